"""Argument parsing functionality for hexsolve."""

import argparse
from constants import Constants, OutputFormats


def build_parser():
    """Build the argument parser for the program."""
    parser = argparse.ArgumentParser(
        prog="hexsolve",
        description=(
            "hexsolve - resolve Hex package requirements into a consistent set of versions"
        ),
        add_help=True,
    )

    parser.add_argument("-p", "--package",
                        dest="PACKAGES",
                        help="Root requirement as NAME[:REQUIREMENT], e.g. gleam_stdlib:'~> 0.30'. Repeatable.",
                        action="append", type=str,
                        default=[])
    parser.add_argument("-l", "--lock",
                        dest="LOCKS",
                        help="Locked version as NAME:VERSION to keep from a previous resolution. Repeatable.",
                        action="append", type=str,
                        default=[])
    parser.add_argument("--root",
                        dest="ROOT",
                        help=f"Name of the root package (default: {Constants.ROOT_PACKAGE_NAME})",
                        action="store", type=str)

    source_group = parser.add_mutually_exclusive_group()
    source_group.add_argument("--registry-file",
                              dest="REGISTRY_FILE",
                              help="Resolve offline against a YAML or JSON registry file",
                              action="store", type=str)
    source_group.add_argument("--registry-url",
                              dest="REGISTRY_URL",
                              help=f"Hex API base URL (default: {Constants.REGISTRY_URL_HEX})",
                              action="store", type=str)
    parser.add_argument("--timeout",
                        dest="TIMEOUT",
                        help="HTTP request timeout in seconds",
                        action="store", type=float)

    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Path to output file",
                        action="store",
                        type=str)
    parser.add_argument("-f", "--format",
                        dest="OUTPUT_FORMAT",
                        help="Output format (text or json, default: text)",
                        action="store",
                        type=str.lower,
                        choices=[f.value for f in OutputFormats],
                        default=OutputFormats.TEXT.value)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level (default: HEXSOLVE_LOG_LEVEL or INFO)",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default=None)
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("-q", "--quiet",
                        dest="QUIET",
                        help="Do not output to console.",
                        action="store_true")
    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
