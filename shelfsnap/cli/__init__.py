"""Command-line interface."""

from shelfsnap.cli.arguments import parse_arguments

__all__ = ["parse_arguments"]
