"""Static checks for NestJS coding guidelines."""

__version__ = "0.1.0"
