"""Precinct Locator: zone resolution and duty calendar service"""

__version__ = "0.1.0"
