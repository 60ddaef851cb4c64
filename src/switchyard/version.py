"""Single source of truth for the switchyard version string."""

__version__: str = "0.3.0"
