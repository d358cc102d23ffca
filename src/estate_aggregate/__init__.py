"""Property / Block / Unit aggregate service for the estate platform."""

__version__ = "0.1.0"
