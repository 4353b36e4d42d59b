#!/usr/bin/env python3
"""
Run one account/metric sync from the command line (e.g. from a system cron).
Run from backend/: python -m scripts.run_sync [--init-db]
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))


async def main():
    from admonitor.ad_platform import AdPlatformError, create_platform_client
    from admonitor.config import ConfigurationError, get_settings
    from admonitor.database import async_session, init_db
    from admonitor.services.sync_service import SyncService

    parser = argparse.ArgumentParser(description="Sync ad accounts and today's metrics")
    parser.add_argument("--init-db", action="store_true", help="Create missing tables first")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    settings = get_settings()

    if args.init_db:
        await init_db()

    try:
        service = SyncService(create_platform_client(settings), settings)
        async with async_session() as db:
            result = await service.run(db)
            await db.commit()
    except ConfigurationError as e:
        print(f"Error: {e}")
        sys.exit(2)
    except AdPlatformError as e:
        print(f"Sync failed: {e}" + (" (retryable)" if e.retryable else ""))
        sys.exit(1)

    print(f"Synced {result.accounts_synced} accounts "
          f"({result.accounts_created} new), "
          f"{result.metrics_created} metrics created, {result.metrics_updated} updated")
    for err in result.errors:
        print(f"  ! {err['account_id']}: {err['error']}")
    sys.exit(0 if result.success else 1)


if __name__ == "__main__":
    asyncio.run(main())
