"""Operator commands.

    sitedesk sites:sync-all
    sitedesk sites:pagespeed-insights [--site ID] [--strategy mobile|desktop]

Both commands only queue jobs; the worker process runs them.
"""
import argparse
import asyncio
import logging
import sys

from sqlalchemy.ext.asyncio import AsyncSession

from sitedesk.models import Site
from sitedesk.models.site_pagespeed_insight import STRATEGIES
from sitedesk.services.dispatch import dispatch_pagespeed, dispatch_sync_all


def _reject_strategy(strategy: str) -> int:
    print(f"Invalid strategy {strategy!r}. Use one of: {', '.join(STRATEGIES)}.", file=sys.stderr)
    return 1


async def sync_all_command(db: AsyncSession) -> int:
    tasks = await dispatch_sync_all(db)
    print(f"Queued sync for {len(tasks)} site(s).")
    return 0


async def pagespeed_command(db: AsyncSession, site_id: int | None, strategy: str) -> int:
    if strategy not in STRATEGIES:
        return _reject_strategy(strategy)

    site_ids = None
    if site_id is not None:
        site = await db.get(Site, site_id)
        if site is None or site.is_deleted:
            print(f"Site {site_id} not found.", file=sys.stderr)
            return 1
        site_ids = [site.id]

    tasks = await dispatch_pagespeed(db, strategy, site_ids=site_ids)
    print(f"Queued PageSpeed Insights ({strategy}) for {len(tasks)} site(s).")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sitedesk", description="Site portfolio maintenance commands")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("sites:sync-all", help="Queue a sync for every sync-enabled site")

    pagespeed = commands.add_parser("sites:pagespeed-insights", help="Queue PageSpeed Insights runs")
    pagespeed.add_argument("--site", type=int, default=None, help="Only this site id")
    pagespeed.add_argument("--strategy", default="mobile", help="mobile or desktop (default: mobile)")
    return parser


async def _run(args: argparse.Namespace) -> int:
    from sitedesk.database import async_session, engine

    try:
        async with async_session() as db:
            if args.command == "sites:sync-all":
                return await sync_all_command(db)
            return await pagespeed_command(db, args.site, args.strategy)
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO)
    args = build_parser().parse_args(argv)

    # Reject a bad strategy before touching the database.
    if args.command == "sites:pagespeed-insights" and args.strategy not in STRATEGIES:
        return _reject_strategy(args.strategy)

    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
