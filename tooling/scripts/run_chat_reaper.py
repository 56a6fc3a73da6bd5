"""Run one chat lifecycle sweep.

Expired rooms have their attachments purged and are marked ended. The sweep
takes the shared ``job_leases`` row, so it is safe to run next to API
instances that have the in-process worker enabled.

Example:
    python tooling/scripts/run_chat_reaper.py --trigger cron
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from loguru import logger


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Execute the chat lifecycle reaper once")
    parser.add_argument(
        "--trigger",
        default="manual",
        help="Label recorded in logs to describe the invocation source.",
    )
    parser.add_argument(
        "--lease-seconds",
        type=int,
        default=None,
        help="Override how long the sweep lease is held before another instance may take it.",
    )
    return parser.parse_args()


async def _run(trigger: str, lease_seconds: int | None) -> dict[str, object]:
    repo_root = Path(__file__).resolve().parents[2]
    api_src = repo_root / "apps" / "api" / "src"
    if str(api_src) not in sys.path:
        sys.path.insert(0, str(api_src))

    from creatorcamp_api.core.settings import settings  # type: ignore import-position
    from creatorcamp_api.db.session import async_session  # type: ignore import-position
    from creatorcamp_api.workers import ChatLifecycleWorker  # type: ignore import-position

    worker = ChatLifecycleWorker(
        async_session,  # type: ignore[arg-type]
        lease_seconds=lease_seconds or settings.chat_reaper_lease_seconds,
    )
    return await worker.run_once(triggered_by=trigger)


def main() -> int:
    args = parse_args()
    summary = asyncio.run(_run(args.trigger, args.lease_seconds))
    if summary.get("skipped"):
        logger.warning("Chat reaper run skipped", reason=summary.get("reason"), trigger=args.trigger)
        return 0
    logger.success(
        "Chat reaper run completed",
        expired=summary.get("expired", 0),
        ended=summary.get("ended", 0),
        failed=summary.get("failed", 0),
        trigger=args.trigger,
    )
    return 1 if summary.get("failed") else 0


if __name__ == "__main__":
    sys.exit(main())
