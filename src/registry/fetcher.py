"""The narrow interface the resolver uses to retrieve package metadata."""

from __future__ import annotations

from typing import Protocol

from versioning.models import Package


class PackageFetcher(Protocol):
    """Anything that can retrieve a package and all of its releases.

    ``fetch`` raises ``versioning.errors.PackageNotFoundError`` when the
    registry does not know the package and ``versioning.errors.FetchError``
    for every other failure (I/O, timeouts, malformed metadata).
    """

    def fetch(self, name: str) -> Package:
        ...
