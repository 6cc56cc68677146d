"""upm_manager — web front end for the local package registry."""

__version__ = "0.1.0"
