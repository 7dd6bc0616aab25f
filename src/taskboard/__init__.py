"""Role-based task board service with realtime task notifications."""

__version__ = "0.1.0"
