"""Business services: geometry, zone resolution, schedules, dataset versions"""
