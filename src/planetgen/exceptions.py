"""Custom exceptions for planet generation."""


class PlanetGenError(Exception):
    """Base exception for planet generation errors."""

    pass


class ConfigurationError(PlanetGenError, ValueError):
    """Raised when generation parameters are rejected before any computation."""

    pass
