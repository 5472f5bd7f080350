"""Private support threads for a Discord community."""

__version__ = "0.1.0"
