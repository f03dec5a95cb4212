"""statekit command line interface."""

from statekit.cli.app import app

__all__ = ["app"]
