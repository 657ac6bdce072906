"""Command-line interface for the TokBox client.

WHY: Operators need a quick way to create a session, hand out a token, or
start/stop a recording without writing code, and to smoke-test a pair of
credentials against the live API.

HOW: Uses argparse subcommands. Credentials come from TOKBOX_API_KEY and
TOKBOX_API_SECRET (via .env). Each subcommand runs one client call and
prints the result to stdout: JSON for sessions and archives, the bare
string for tokens. Errors go to stderr with exit status 1.

RULES:
- Subcommands: create-session, token, start-archive, stop-archive, list-archives
- Results go to stdout, status and errors to stderr
- --verbose enables DEBUG logging (never logs secrets or tokens)
- Exit code 1 on any TokboxError or rejected input (ValueError), 0 otherwise
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, List, Optional

from tokbox.api.client import TokboxClient
from tokbox.api.models import MediaMode, Role
from tokbox.errors import TokboxError


def _status(msg: str) -> None:
    print(msg, file=sys.stderr, flush=True)


def _emit(data: Any) -> None:
    print(json.dumps(data, indent=2))


def _session_dict(session) -> dict:  # noqa: ANN001
    return {
        "session_id": session.session_id,
        "project_id": session.project_id,
        "partner_id": session.partner_id,
        "create_dt": session.create_dt,
        "session_status": session.status,
        "media_server_url": session.media_server_url,
    }


def _run(args: argparse.Namespace, client: TokboxClient) -> None:
    if args.command == "create-session":
        mode = MediaMode.RELAYED if args.p2p else MediaMode.ROUTED
        session = client.new_session(location=args.location or "", media_mode=mode)
        _emit(_session_dict(session))
    elif args.command == "token":
        session = client.session_from_id(args.session_id)
        print(session.token(role=args.role, connection_data=args.data, expire_in=args.expire))
    elif args.command == "start-archive":
        session = client.session_from_id(args.session_id)
        _emit(session.start_archive(args.name).to_dict())
    elif args.command == "stop-archive":
        client.stop_archive(args.archive_id)
        _status("Stopped archive {}".format(args.archive_id))
    elif args.command == "list-archives":
        _emit(client.list_archives().to_dict())


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="tokbox",
        description="Create TokBox sessions, mint client tokens, and manage archives.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging on stderr.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create-session", help="Create a new session.")
    create.add_argument("--location", default=None, help="IP address hint for the media server.")
    create.add_argument(
        "--p2p",
        action="store_true",
        help="Relay media directly between clients instead of the Media Router.",
    )

    token = sub.add_parser("token", help="Mint a client token for a session.")
    token.add_argument("session_id")
    token.add_argument(
        "--role",
        default=Role.PUBLISHER.value,
        choices=[r.value for r in Role],
        help="Role granted by the token (default: %(default)s).",
    )
    token.add_argument("--data", default="", help="Connection metadata string.")
    token.add_argument(
        "--expire",
        type=int,
        default=0,
        help="Token lifetime in seconds; 0 for no expiry (default: %(default)s).",
    )

    start = sub.add_parser("start-archive", help="Start recording a session.")
    start.add_argument("session_id")
    start.add_argument("name")

    stop = sub.add_parser("stop-archive", help="Stop a running archive.")
    stop.add_argument("archive_id")

    sub.add_parser("list-archives", help="List the project's archives.")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for ``python -m tokbox`` and the ``tokbox`` script.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        with TokboxClient.from_env() as client:
            _run(args, client)
    except (TokboxError, ValueError) as exc:
        _status("Error: {}".format(exc))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
