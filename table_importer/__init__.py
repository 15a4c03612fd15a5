"""Excel -> typed row importer for the console's user-database tables."""

__version__ = "0.3.0"
