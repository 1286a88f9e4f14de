#!/usr/bin/env python3
"""
Organizer command line: evaluation windows, leaderboard, stats, registration.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger
from tabulate import tabulate

from confpulse.companion import ConferenceCompanion
from confpulse.config import CONFIG
from confpulse.db.client import get_db_client
from confpulse.exceptions import ConfPulseInputError
from confpulse.models.activity import Activity
from confpulse.models.evaluation import EvaluationType

EVALUATION_TYPES = [t.value for t in EvaluationType]


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="confpulse", description="Conference pulse admin tool")
    parser.add_argument("--mongodb-uri", default=None, help="Override CONFPULSE_MONGODB_URI")
    parser.add_argument("--db-name", default=None, help="Override CONFPULSE_DB_NAME")
    parser.add_argument("--log-level", default=CONFIG.log_level)
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="Create database indexes")
    sub.add_parser("status", help="Show evaluation windows")

    for name in ("open", "close"):
        p = sub.add_parser(name, help=f"{name.capitalize()} an evaluation window")
        p.add_argument("evaluation_type", choices=EVALUATION_TYPES)

    p = sub.add_parser("stats", help="Response count for an evaluation")
    p.add_argument("evaluation_type", choices=EVALUATION_TYPES)

    p = sub.add_parser("leaderboard", help="Show the leaderboard")
    p.add_argument("--limit", "-n", type=int, default=CONFIG.leaderboard_limit)

    p = sub.add_parser("summary", help="Evaluation progress for one participant")
    p.add_argument("code")

    p = sub.add_parser("register", help="Register a participant")
    p.add_argument("--email", required=True)
    p.add_argument("--language", default=CONFIG.default_language, choices=["en", "fr"])
    p.add_argument("--name", default="")
    p.add_argument("--institution", default="")
    p.add_argument("--code", default=None)

    p = sub.add_parser("load-program", help="Upsert activities from a JSON list")
    p.add_argument("path", type=Path)

    p = sub.add_parser("end-activity", help="Record the actual end of an activity")
    p.add_argument("activity_id")

    return parser


async def run(args: argparse.Namespace, companion: ConferenceCompanion) -> int:
    if args.command == "init":
        await companion.ensure_indexes()
        print("Indexes created")

    elif args.command == "status":
        status = await companion.get_evaluation_status()
        rows = []
        for t in EvaluationType:
            window = status.window(t)
            rows.append({
                "Evaluation": t.value,
                "Open": "yes" if window.is_open else "no",
                "Opened at": window.opened_at or "",
                "Closed at": window.closed_at or "",
            })
        print(tabulate(rows, headers="keys", tablefmt="grid"))

    elif args.command == "open":
        await companion.open_evaluation(args.evaluation_type)

    elif args.command == "close":
        await companion.close_evaluation(args.evaluation_type)

    elif args.command == "stats":
        stats = await companion.get_evaluation_stats(args.evaluation_type)
        print(f"{args.evaluation_type}: {stats['total_responses']} responses")

    elif args.command == "leaderboard":
        leaderboard = await companion.get_leaderboard(limit=args.limit)
        rows = [
            {
                "Rank": e.rank,
                "Code": e.code,
                "Name": e.name,
                "Points": e.points,
                "Badges": len(e.badges),
            }
            for e in leaderboard.entries
        ]
        print(f"\n🏆 Top {len(rows)} of {leaderboard.total_participants} participants:")
        print(tabulate(rows, headers="keys", tablefmt="grid"))

    elif args.command == "summary":
        summary = await companion.get_evaluation_summary(args.code)
        if summary is None:
            print("Could not load evaluation summary", file=sys.stderr)
            return 1
        rows = [
            {"Evaluation": t.value, "Status": getattr(summary, t.value).icon}
            for t in EvaluationType
        ]
        print(tabulate(rows, headers="keys", tablefmt="grid"))
        print(f"Progress: {summary.total_completed}/{summary.total_required} ({summary.progress}%)")

    elif args.command == "register":
        participant = await companion.register_participant(
            email=args.email,
            language=args.language,
            name=args.name,
            institution=args.institution,
            code=args.code,
        )
        print(participant.code)

    elif args.command == "load-program":
        items = json.loads(args.path.read_text(encoding="utf-8"))
        loaded = await companion.load_program(Activity.model_validate(item) for item in items)
        print(f"Loaded {loaded} activities")

    elif args.command == "end-activity":
        if not await companion.end_activity(args.activity_id):
            return 1

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    async def _main() -> int:
        client = get_db_client(args.mongodb_uri)
        try:
            companion = ConferenceCompanion.from_client(client, args.db_name)
            return await run(args, companion)
        except ConfPulseInputError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 2
        finally:
            client.close()

    return asyncio.run(_main())


if __name__ == "__main__":
    sys.exit(main())
