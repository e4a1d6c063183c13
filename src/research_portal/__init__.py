"""Research corpus gateway for the healthcare product portal."""

__version__ = "0.1.0"
