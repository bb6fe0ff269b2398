"""Translation management API: tagged localized strings, search, caching and export."""

__version__ = "0.1.0"
