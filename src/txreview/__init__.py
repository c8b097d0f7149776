"""Transaction review tool: filter, classify and export imported bank transactions."""

__version__ = "0.1.0"
