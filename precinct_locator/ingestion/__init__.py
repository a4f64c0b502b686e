"""Dataset seeding and startup bootstrap"""
