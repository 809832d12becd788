"""Allow ``python -m charmctl`` invocation.

This module simply delegates to the CLI error-boundary entry point so
that ``python -m charmctl`` behaves identically to the ``charmctl``
console script.
"""

from __future__ import annotations

from charmctl.cli.app import cli

if __name__ == "__main__":
    cli()
