"""diffstream — streaming parser for git diff output."""

__version__ = "0.1.0"
