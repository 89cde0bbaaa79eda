"""Signal K to Weather Underground submission package."""

__version__ = "0.1.0"
