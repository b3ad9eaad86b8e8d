"""Client library for the POS back-office API."""

__version__ = "0.1.0"
