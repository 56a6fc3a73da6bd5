"""Recount approved applications and repair cached campaign counters.

Example:
    python tooling/scripts/reconcile_campaign_inventory.py --campaign-id <uuid>
    python tooling/scripts/reconcile_campaign_inventory.py --all --dry-run
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from uuid import UUID

from loguru import logger


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile campaign approved counts")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--campaign-id", type=UUID, help="Reconcile a single campaign.")
    target.add_argument("--all", action="store_true", help="Reconcile every non-archived campaign.")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report drift without committing corrected counters.",
    )
    return parser.parse_args()


async def _run(campaign_id: UUID | None, dry_run: bool) -> list[dict[str, object]]:
    repo_root = Path(__file__).resolve().parents[2]
    api_src = repo_root / "apps" / "api" / "src"
    if str(api_src) not in sys.path:
        sys.path.insert(0, str(api_src))

    from sqlalchemy import select  # type: ignore import-position

    from creatorcamp_api.db.session import async_session  # type: ignore import-position
    from creatorcamp_api.models.campaign import Campaign, CampaignStatusEnum  # type: ignore import-position
    from creatorcamp_api.services.campaigns import CampaignInventoryController  # type: ignore import-position

    reports: list[dict[str, object]] = []
    async with async_session() as session:
        if campaign_id is not None:
            campaign_ids = [campaign_id]
        else:
            result = await session.execute(
                select(Campaign.id).where(Campaign.status != CampaignStatusEnum.ARCHIVED.value)
            )
            campaign_ids = list(result.scalars())

        controller = CampaignInventoryController(session)
        for current_id in campaign_ids:
            reports.append(await controller.reconcile(current_id))

        if dry_run:
            await session.rollback()
        else:
            await session.commit()
    return reports


def main() -> int:
    args = parse_args()
    reports = asyncio.run(_run(args.campaign_id, args.dry_run))
    drifted = [report for report in reports if report["previous_count"] != report["approved_count"]]
    over_committed = [report for report in reports if report["over_committed"]]
    for report in drifted:
        logger.warning("Campaign counter drift", **report)
    logger.success(
        "Campaign inventory reconciliation completed",
        campaigns=len(reports),
        drifted=len(drifted),
        over_committed=len(over_committed),
        dry_run=args.dry_run,
    )
    return 1 if over_committed else 0


if __name__ == "__main__":
    sys.exit(main())
