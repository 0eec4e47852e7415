"""Hex registry package.

- client.py: HTTP interactions with the hex.pm API, exposed as a package fetcher
"""

from .client import HexPackageFetcher  # noqa: F401

__all__ = ["HexPackageFetcher"]
