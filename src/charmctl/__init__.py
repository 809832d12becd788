"""charmctl — deploy charms and bootstrap cluster state stores.

Built around a small command contract with a strict layered architecture.
"""

from charmctl.version import __version__

__all__: list[str] = ["__version__"]
