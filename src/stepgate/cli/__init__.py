"""stepgate command-line interface."""

from stepgate.cli.app import app

__all__ = ["app"]
