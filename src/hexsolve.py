"""hexsolve - resolve Hex package requirements into concrete versions

    Raises:
        SystemExit: Always, with one of the ExitCodes values
"""
import sys
import logging
import json

from constants import ExitCodes, Constants, OutputFormats
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from args import parse_args
from cli_config import apply_registry_overrides

from registry.hex import HexPackageFetcher
from registry.local import load_registry_file
from versioning.errors import (
    FetchError,
    LockConflict,
    ProviderFailure,
    ResolutionFailure,
)
from versioning.parser import parse_cli_token, parse_lock_token
from versioning.service import resolve_versions

logger = logging.getLogger(__name__)


def build_requirements(args):
    """Turn ``--package`` and ``--lock`` tokens into requirements and locks.

    Raises:
        ValueError: If a token cannot be parsed.
    """
    requirements = [parse_cli_token(token) for token in args.PACKAGES]
    locked = dict(parse_lock_token(token) for token in args.LOCKS)
    return [(req.name, req.requirement) for req in requirements], locked


def build_fetcher(args):
    """Return the fetch capability selected on the command line.

    Raises:
        OSError: If the registry file cannot be read.
        FetchError: If the registry file is malformed.
    """
    if getattr(args, "REGISTRY_FILE", None):
        return load_registry_file(args.REGISTRY_FILE)
    return HexPackageFetcher(Constants.REGISTRY_URL_HEX)


def render(root, versions, fmt):
    """Render a resolution as text or JSON."""
    ordered = sorted(versions.items())
    if fmt == OutputFormats.JSON.value:
        return json.dumps(
            {"root": root, "packages": {name: str(version) for name, version in ordered}},
            ensure_ascii=False,
            indent=4,
        )
    return "\n".join(f"{name} {version}" for name, version in ordered)


def write_output(text, path):
    """Write rendered output to ``path``; exits with FILE_ERROR on failure."""
    try:
        with open(path, 'w', encoding='utf-8') as file:
            file.write(text + "\n")
        logging.info("Resolution has been successfully exported at: %s", path)
    except OSError as e:
        logging.error("Output file couldn't be written to disk: %s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL, getattr(args, "LOG_FILE", None))
    apply_registry_overrides(args)

    try:
        requirements, locked = build_requirements(args)
    except ValueError as e:
        logging.error("Invalid input: %s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)

    try:
        fetcher = build_fetcher(args)
    except (OSError, FetchError) as e:
        logging.error("Could not load registry: %s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)

    root = getattr(args, "ROOT", None) or Constants.ROOT_PACKAGE_NAME
    if is_debug_enabled(logger):
        logger.debug(
            "Starting resolution",
            extra=extra_context(
                event="function_entry",
                component="cli",
                action="resolve",
                root=root,
                requirements=len(requirements),
                locked=len(locked),
            ),
        )

    try:
        versions = resolve_versions(fetcher, {}, root, requirements, locked)
    except ProviderFailure as e:
        logging.error("%s", e)
        sys.exit(ExitCodes.CONNECTION_ERROR.value)
    except LockConflict as e:
        logging.error("%s", e)
        sys.exit(ExitCodes.RESOLUTION_FAILED.value)
    except ResolutionFailure as e:
        logging.error("Dependency resolution failed:\n%s", e)
        sys.exit(ExitCodes.RESOLUTION_FAILED.value)

    text = render(root, versions, args.OUTPUT_FORMAT)
    if getattr(args, "OUTPUT", None):
        write_output(text, args.OUTPUT)
    if not args.QUIET:
        print(text)

    sys.exit(ExitCodes.SUCCESS.value)


if __name__ == "__main__":
    main()
