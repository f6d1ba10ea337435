"""Synchronize edited translation strings with a git repository and open pull requests."""

__version__ = "0.3.0"
