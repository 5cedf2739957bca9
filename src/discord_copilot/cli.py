from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Sequence

from discord_copilot.config import load_config
from discord_copilot.errors import DocumentError
from discord_copilot.memory.ingest import ingest_text, read_document
from discord_copilot.runtime import ServiceContext

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m discord_copilot",
        description="Run the Discord copilot and manage its datastore.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config TOML (defaults to ./config.toml when present).",
    )
    subparsers = parser.add_subparsers(
        dest="command", metavar="<command>", required=True
    )

    subparsers.add_parser("run", help="Connect to Discord and start answering messages.")

    allow_cmd = subparsers.add_parser("allow", help="Authorize a channel to trigger replies.")
    allow_cmd.add_argument("channel_id", type=str)

    deny_cmd = subparsers.add_parser("deny", help="Remove a channel from the allow-list.")
    deny_cmd.add_argument("channel_id", type=str)

    subparsers.add_parser("channels", help="List authorized channels.")

    persona_cmd = subparsers.add_parser("persona", help="Show or replace the persona instruction.")
    persona_src = persona_cmd.add_mutually_exclusive_group()
    persona_src.add_argument("text", nargs="?", default=None, help="New persona text.")
    persona_src.add_argument(
        "--file", "-f", type=Path, default=None, help="Read the new persona from a file."
    )

    ingest_cmd = subparsers.add_parser(
        "ingest", help="Chunk, embed and store PDF or plain-text documents."
    )
    ingest_cmd.add_argument("files", nargs="+", type=Path)

    purge_cmd = subparsers.add_parser("purge", help="Delete the conversation history of a channel.")
    purge_cmd.add_argument("channel_id", type=str)

    return parser


async def _dispatch(args: argparse.Namespace, services: ServiceContext) -> int:
    if args.command == "allow":
        added = await services.channels.add(args.channel_id)
        print(f"Channel {args.channel_id} {'authorized' if added else 'was already authorized'}.")
        return 0

    if args.command == "deny":
        removed = await services.channels.remove(args.channel_id)
        print(f"Channel {args.channel_id} {'removed' if removed else 'was not authorized'}.")
        return 0

    if args.command == "channels":
        entries = await services.channels.list_all()
        if not entries:
            print("No authorized channels.")
        for entry in entries:
            print(entry.channel_id)
        return 0

    if args.command == "persona":
        if args.file is not None:
            new_text = args.file.read_text(encoding="utf-8")
        else:
            new_text = args.text
        if new_text is None:
            current = await services.persona.get()
            print(current if current else "(no persona set; the fallback is used)")
            return 0
        await services.persona.set(new_text.strip())
        print("Persona updated.")
        return 0

    if args.command == "ingest":
        status = 0
        for path in args.files:
            try:
                text = read_document(path)
            except (OSError, DocumentError) as exc:
                logger.error("Could not read %s: %s", path, exc)
                status = 1
                continue
            report = await ingest_text(services, text)
            print(f"{path}: embedded {report.embedded_chunks}/{report.total_chunks} chunk(s)")
            if report.embedded_chunks < report.total_chunks:
                status = 1
        return status

    if args.command == "purge":
        removed = await services.history.purge(args.channel_id)
        print(f"Deleted {removed} turn(s) from channel {args.channel_id}.")
        return 0

    raise ValueError(f"Unknown command: {args.command}")


# Credentials each command needs; commands not listed only touch the datastore.
_CREDENTIALS: dict[str, dict[str, bool]] = {
    "run": {},
    "ingest": {"discord": False, "model": False},
}


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    needs = _CREDENTIALS.get(args.command)
    try:
        config = load_config(args.config, validate=False)
        if needs is not None:
            config.validate(**needs)
    except ValueError as exc:
        parser.error(str(exc))

    services = ServiceContext.create(config, with_clients=needs is not None)

    if args.command == "run":
        from discord_copilot.clients import disc

        disc.run(services)
        return 0

    try:
        return asyncio.run(_dispatch(args, services))
    finally:
        services.close()


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
