"""novelvn: a visual novel player for JSON novel documents."""

__version__ = "0.1.0"
