"""Patient records client data layer."""

__version__ = "1.0.0"
