"""IceKart live race service."""

__version__ = "0.3.0"
