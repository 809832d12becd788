"""Single source of the charmctl version string."""

__version__: str = "0.1.0"
