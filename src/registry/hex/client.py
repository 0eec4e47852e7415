"""Hex registry client: fetch packages and their releases via the hex.pm HTTP API."""
from __future__ import annotations

import logging
import urllib.parse
from typing import Any, Dict, List, Optional

from constants import Constants
from common.http_client import get_json
from common.logging_utils import extra_context, is_debug_enabled, safe_url

from versioning.errors import FetchError, InvalidVersionError, PackageNotFoundError
from versioning.models import (
    Dependency,
    Package,
    Release,
    RetirementReason,
    RetirementStatus,
)
from versioning.ranges import Range
from versioning.version import parse_version

logger = logging.getLogger(__name__)


def _package_url(base_url: str, name: str) -> str:
    if not base_url.endswith("/"):
        base_url = base_url + "/"
    return f"{base_url}packages/{urllib.parse.quote(name, safe='')}"


def _retirement(data: Optional[Dict[str, Any]]) -> Optional[RetirementStatus]:
    if not isinstance(data, dict):
        return None
    return RetirementStatus(
        reason=RetirementReason.from_value(data.get("reason")),
        message=str(data.get("message") or ""),
    )


def _parse_requirements(name: str, data: Any) -> Dict[str, Dependency]:
    if not data:
        return {}
    if not isinstance(data, dict):
        raise FetchError(f"Malformed requirements for {name}")
    requirements: Dict[str, Dependency] = {}
    for dep_name, spec in data.items():
        if not isinstance(spec, dict) or not isinstance(spec.get("requirement"), str):
            raise FetchError(f"Malformed requirement on {dep_name} in {name}")
        requirements[dep_name] = Dependency(
            requirement=Range(spec["requirement"]),
            optional=bool(spec.get("optional", False)),
            app=spec.get("app"),
            repository=spec.get("repository"),
        )
    return requirements


def _decode_checksum(name: str, checksum: Any) -> bytes:
    if not checksum:
        return b""
    try:
        return bytes.fromhex(str(checksum))
    except ValueError as exc:
        raise FetchError(f"Malformed checksum in {name}") from exc


class HexPackageFetcher:
    """Fetch capability backed by the hex.pm JSON API.

    Every release of a package needs one request for its requirements; all
    responses go through the shared HTTP cache.
    """

    def __init__(self, base_url: Optional[str] = None):
        self._base_url = base_url or Constants.REGISTRY_URL_HEX

    def _get(self, url: str, name: str) -> Any:
        status, _, data = get_json(url)
        if status == 404:
            raise PackageNotFoundError(name)
        if status == 0:
            raise FetchError(f"Could not reach {safe_url(url)}")
        if status != 200:
            raise FetchError(f"Unexpected HTTP {status} from {safe_url(url)}")
        if not isinstance(data, dict):
            raise FetchError(f"Invalid JSON from {safe_url(url)}")
        return data

    def fetch(self, name: str) -> Package:
        """Fetch ``name`` and every one of its releases.

        Raises:
            PackageNotFoundError: If hex.pm has no such package.
            FetchError: On transport errors or malformed responses.
        """
        url = _package_url(self._base_url, name)
        data = self._get(url, name)

        retirements = data.get("retirements") or {}
        releases: List[Release] = []
        for entry in data.get("releases") or []:
            if not isinstance(entry, dict) or "version" not in entry:
                raise FetchError(f"Malformed release entry in {name}")
            try:
                version = parse_version(str(entry["version"]))
            except InvalidVersionError as exc:
                raise FetchError(f"Invalid version in {name}: {exc}") from exc

            release_url = entry.get("url") or f"{url}/releases/{urllib.parse.quote(str(version), safe='')}"
            detail = self._get(release_url, name)
            retirement = _retirement(retirements.get(str(version))) or _retirement(
                detail.get("retirement")
            )
            releases.append(
                Release(
                    version=version,
                    requirements=_parse_requirements(name, detail.get("requirements")),
                    retirement_status=retirement,
                    outer_checksum=_decode_checksum(name, detail.get("checksum")),
                )
            )

        if is_debug_enabled(logger):
            logger.debug(
                "Fetched hex package",
                extra=extra_context(
                    event="fetch",
                    component="hex_client",
                    action="fetch",
                    outcome="success",
                    package=name,
                    releases=len(releases),
                    retired=len(retirements),
                ),
            )
        return Package(
            name=name,
            releases=releases,
            repository=str(data.get("repository") or Constants.REPOSITORY_NAME_HEX),
        )
