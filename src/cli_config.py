"""CLI configuration overrides for runtime tunables.

Applied after YAML config and environment overrides so command line flags
have the highest precedence.
"""

from __future__ import annotations

import logging

from constants import Constants

logger = logging.getLogger(__name__)


def apply_registry_overrides(args) -> None:
    """Apply ``--registry-url`` and ``--timeout`` onto Constants."""
    url = getattr(args, "REGISTRY_URL", None)
    if url:
        if not url.endswith("/"):
            url = url + "/"
        Constants.REGISTRY_URL_HEX = url
    timeout = getattr(args, "TIMEOUT", None)
    if timeout is not None:
        if timeout <= 0:
            logger.warning("Ignoring non-positive --timeout %s", timeout)
        else:
            Constants.REQUEST_TIMEOUT = timeout
