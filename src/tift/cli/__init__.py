"""Command line interface for tift."""

from tift.cli.app import app

__all__ = ["app"]
