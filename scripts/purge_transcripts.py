"""Delete archived transcripts older than the retention window.

Usage:
    python -m scripts.purge_transcripts --days 90
"""

import argparse
import asyncio

from app.core.config import settings
from app.core.database import create_engine, create_session_factory
from app.services.transcript_archiver import TranscriptArchiver


async def purge(days: int) -> int:
    """Run one purge against the configured database."""
    engine = create_engine(settings.database, settings.app)
    try:
        archiver = TranscriptArchiver(
            create_session_factory(engine),
            timeout_seconds=settings.database.timeout_seconds,
            page_limit_max=settings.transcript.page_limit_max,
        )
        return await archiver.purge_older_than(days)
    finally:
        await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Purge old chat transcripts")
    parser.add_argument(
        "--days",
        type=int,
        default=settings.transcript.retention_days,
        help="Delete transcripts that ended more than this many days ago",
    )
    args = parser.parse_args()

    deleted = asyncio.run(purge(args.days))
    print(f"Deleted {deleted} transcripts older than {args.days} days")


if __name__ == "__main__":
    main()
