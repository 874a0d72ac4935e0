"""SafeIntel - live security intelligence for areas and routes in Nigeria."""

__version__ = "1.0.0"
