"""Git media command-line interface.

Usage:
    gitmedia [--endpoint URL] [-v] probe PATH
    gitmedia [--endpoint URL] [-v] push PATH [--name NAME]
    gitmedia [--endpoint URL] [-v] pull PATH [--out FILE]

Credentials come from GIT_MEDIA_USERNAME/GIT_MEDIA_PASSWORD when both are
set, otherwise from ``git credential``.

Exit codes:
    0: Success
    1: Transfer failed (JSON error document written to stderr)
    2: Configuration or usage error
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import shutil
import sys
from typing import Any

from gitmedia.client import GitMediaClient
from gitmedia.config import GitMediaConfig
from gitmedia.credentials import (
    CredentialProvider,
    GitCredentialHelper,
    StaticCredentialProvider,
)
from gitmedia.errors import ConfigError, GitMediaError, LocalFileError
from gitmedia.progress import log_progress
from gitmedia.tracing import configure_tracing
from gitmedia.urls import derive_oid

GIT_MEDIA_USERNAME_ENV = "GIT_MEDIA_USERNAME"
GIT_MEDIA_PASSWORD_ENV = "GIT_MEDIA_PASSWORD"

COPY_CHUNK_SIZE = 64 * 1024


def _output_error(data: dict[str, Any]) -> None:
    """Write a JSON error document to stderr with deterministic ordering."""
    print(json.dumps({"error": data}, sort_keys=True, indent=2), file=sys.stderr)


def _credential_provider() -> CredentialProvider:
    username = os.environ.get(GIT_MEDIA_USERNAME_ENV)
    password = os.environ.get(GIT_MEDIA_PASSWORD_ENV)
    if username and password is not None:
        return StaticCredentialProvider(username, password)
    return GitCredentialHelper()


def cmd_probe(client: GitMediaClient, args: argparse.Namespace) -> int:
    client.options(args.path)
    return 0


def cmd_push(client: GitMediaClient, args: argparse.Namespace) -> int:
    name = args.name or args.path
    client.put(args.path, name, progress=log_progress(name))
    return 0


def cmd_pull(client: GitMediaClient, args: argparse.Namespace) -> int:
    with client.get(args.path) as body:
        try:
            if args.out:
                with open(args.out, "wb") as out:
                    shutil.copyfileobj(body, out, COPY_CHUNK_SIZE)
            else:
                shutil.copyfileobj(body, sys.stdout.buffer, COPY_CHUNK_SIZE)
                sys.stdout.buffer.flush()
        except OSError as exc:
            oid = derive_oid(args.path)
            raise LocalFileError(
                f"Cannot write object {oid}: {exc.strerror or exc}", oid=oid, path=args.out
            ) from exc
    return 0


COMMAND_DISPATCH = {
    "probe": cmd_probe,
    "push": cmd_push,
    "pull": cmd_pull,
}


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="gitmedia",
        description="Transfer large objects to and from a git media server",
    )
    parser.add_argument(
        "--endpoint",
        metavar="URL",
        default=None,
        help="Media endpoint URL (default: $GIT_MEDIA_ENDPOINT)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    probe_parser = subparsers.add_parser("probe", help="Check the server for a local object")
    probe_parser.add_argument("path", metavar="PATH", help="Local object file")

    push_parser = subparsers.add_parser("push", help="Upload a local object")
    push_parser.add_argument("path", metavar="PATH", help="Local object file")
    push_parser.add_argument("--name", metavar="NAME", help="Name shown in log output")

    pull_parser = subparsers.add_parser("pull", help="Download an object")
    pull_parser.add_argument("path", metavar="PATH", help="Object path (base name is the oid)")
    pull_parser.add_argument(
        "--out",
        metavar="FILE",
        help="Write the object to FILE (default: stdout)",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 2

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    configure_tracing()

    try:
        config = GitMediaConfig.from_environment(endpoint=args.endpoint)
    except ConfigError as e:
        _output_error({"kind": "CONFIG", "message": e.message})
        return 2

    handler = COMMAND_DISPATCH[args.command]
    try:
        with GitMediaClient(config, _credential_provider()) as client:
            return handler(client, args)
    except GitMediaError as e:
        _output_error(e.to_dict())
        return 1


if __name__ == "__main__":
    sys.exit(main())
