#!/usr/bin/env python3
"""
generate_docset.py
==================
Generates a Dash docset for the BigQuery Standard SQL reference.

Usage
-----
    python -m bigquery_docset.generate_docset [options] COMMAND

Commands
--------
    fetch       Mirror the reference site and download the icon
    build       Build, validate and archive the docset (fetching if needed)
    dump        Print the built index
    diff        Diff the built index (and with --docs, documents) against
                the previous version
    push        Commit the archive to the Dash-User-Contributions fork
    clean       Delete fetched and generated files

Environment
-----------
    BUILD_VERSION       Operate on versions/<BUILD_VERSION>/ instead of the
                        freshly built docset
    PREVIOUS_VERSION    Version to diff against (default: the newest older
                        version under versions/)
"""

import argparse
import logging
import sys
from pathlib import Path

from . import publish
from .config import DOCSET, ICON_FILE
from .errors import DocsetError, VersionError
from .fetch import fetch_docs, fetch_icon
from .index import dump_index

log = logging.getLogger(__name__)


def cmd_fetch(args):
    fetch_docs(args.workdir)
    fetch_icon(args.workdir / ICON_FILE)


def cmd_build(args):
    log.info("=" * 60)
    log.info("Building %s in %s", DOCSET, args.workdir)
    log.info("=" * 60)
    publish.build(args.workdir)
    try:
        publish.diff_index(args.workdir)
    except VersionError as exc:
        log.info("Skipping index diff: %s", exc)


def cmd_dump(args):
    dump_index(publish.built_docset(args.workdir), sys.stdout)


def cmd_diff(args):
    publish.diff_index(args.workdir)
    if args.docs:
        publish.diff_docs(args.workdir)


def cmd_push(args):
    publish.push(args.workdir)


def cmd_clean(args):
    publish.clean(args.workdir)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Generate a Dash docset for the BigQuery Standard SQL reference",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--workdir",
        metavar="DIR",
        type=Path,
        default=Path.cwd(),
        help="Directory holding the mirror, the docset and versions/.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log per-document details.")

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True
    sub.add_parser("fetch", help="Mirror the reference site and fetch the icon.").set_defaults(func=cmd_fetch)
    sub.add_parser("build", help="Build, validate and archive the docset.").set_defaults(func=cmd_build)
    sub.add_parser("dump", help="Print the built index.").set_defaults(func=cmd_dump)
    diff = sub.add_parser("diff", help="Diff against the previous version.")
    diff.add_argument("--docs", action="store_true", help="Also diff the document files.")
    diff.set_defaults(func=cmd_diff)
    sub.add_parser("push", help="Push the archive to the contributions fork.").set_defaults(func=cmd_push)
    sub.add_parser("clean", help="Delete fetched and generated files.").set_defaults(func=cmd_clean)
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(message)s",
        datefmt="%H:%M:%S",
    )
    args.workdir = args.workdir.resolve()
    try:
        args.func(args)
    except DocsetError as exc:
        log.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
