from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from app.modules.review.api_client import FlashcardsApiClient
from app.modules.review.models import ViewState
from app.modules.review.session import ReviewSession
from app.modules.review.state import TransitionRejected


def _load_source(args: argparse.Namespace) -> str:
    if args.source_file == "-":
        return sys.stdin.read()
    path = Path(args.source_file)
    if not path.exists():
        raise SystemExit(f"Source file not found: {path}")
    return path.read_text(encoding="utf-8")


def _print_proposals(session: ReviewSession, as_json: bool) -> None:
    proposals = session.state.proposals
    if as_json:
        print(
            json.dumps(
                [
                    {"index": i + 1, **p.to_payload(), "selected": p.is_selected}
                    for i, p in enumerate(proposals)
                ],
                indent=2,
                ensure_ascii=False,
            )
        )
        return
    for i, p in enumerate(proposals, start=1):
        mark = "x" if p.is_selected else " "
        print(f"[{mark}] {i}. Q: {p.question}")
        print(f"       A: {p.answer}")


def _report_error(session: ReviewSession) -> None:
    # The process exits right after, so redirects are reported instead of scheduled
    error = session.state.error
    print(error.message, file=sys.stderr)
    if error.should_redirect and error.redirect_url:
        print(f"Redirecting to {error.redirect_url}", file=sys.stderr)
    session.cancel()


def _confirm(count: int) -> bool:
    reply = input(f"Save {count} selected flashcard(s)? [y/N] ")
    return reply.strip().lower() in ("y", "yes")


async def _run(args: argparse.Namespace) -> int:
    client = FlashcardsApiClient(
        args.base_url, args.token, api_version=args.api_version
    )
    session = ReviewSession(client)
    session.set_source_text(_load_source(args))

    check = session.state.source_validation
    if not check.is_valid:
        print(check.message, file=sys.stderr)
        return 2

    await session.generate()
    if session.state.view_state is ViewState.ERROR:
        _report_error(session)
        return 1

    proposals = session.state.proposals
    for index in args.drop or []:
        if not 1 <= index <= len(proposals):
            print(f"Ignoring --drop {index}: no such proposal", file=sys.stderr)
            continue
        session.toggle(proposals[index - 1].id)

    _print_proposals(session, args.json)

    if session.state.selected_count == 0:
        print("Nothing selected; nothing saved.")
        return 0
    if not args.yes and not _confirm(session.state.selected_count):
        session.cancel()
        print("Discarded.")
        return 0

    try:
        await session.save()
    except TransitionRejected as e:
        print(f"Cannot save: {e.reason}", file=sys.stderr)
        return 1

    if session.state.view_state is ViewState.ERROR:
        _report_error(session)
        return 1

    print(f"Saved {session.last_created_count} flashcard(s).")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="flashcards-review",
        description="Generate flashcard proposals from a text file, review them and save the selection",
    )
    parser.add_argument(
        "--source-file", "-f", required=True, help="Path to the source text ('-' for stdin)"
    )
    parser.add_argument(
        "--base-url",
        default="http://localhost:9000",
        help="API server base URL",
    )
    parser.add_argument("--api-version", default="v1", help="API version prefix")
    parser.add_argument("--token", help="Bearer token; required to save")
    parser.add_argument(
        "--drop",
        type=int,
        nargs="*",
        help="1-based indexes of proposals to deselect before saving",
    )
    parser.add_argument("--yes", "-y", action="store_true", help="Save without asking")
    parser.add_argument("--json", action="store_true", help="Print proposals as JSON")

    args = parser.parse_args(argv)
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
