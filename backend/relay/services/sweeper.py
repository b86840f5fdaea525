"""Retention sweeper - deletes notifications past the retention window."""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..context import RelayContext
from ..errors import FatalBatchFailure
from ..models import Notification
from ..utils.clock import utcnow
from ..utils.db_utils import retry_on_lock

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    """Totals for one sweep run."""
    deleted: int = 0
    batch_sizes: List[int] = field(default_factory=list)

    @property
    def batches(self) -> int:
        return len(self.batch_sizes)


async def sweep_expired_notifications(
    session_factory: async_sessionmaker[AsyncSession],
    retention_days: int = 30,
    batch_size: int = 500,
    now: Optional[datetime] = None,
) -> SweepResult:
    """Delete notifications created before now - retention_days.

    Each batch selects afresh, deletes at most batch_size rows and commits in
    its own session. Nothing carries over between runs: an interrupted run
    leaves exactly the uncommitted remainder for the next one.
    """
    cutoff = (now or utcnow()) - timedelta(days=retention_days)
    result = SweepResult()

    logger.info(f"Starting cleanup of notifications created before {cutoff.isoformat()}")

    while True:
        try:
            async with session_factory() as session:
                ids_result = await session.execute(
                    select(Notification.id)
                    .where(Notification.created_at < cutoff)
                    .limit(batch_size)
                )
                ids = list(ids_result.scalars().all())
                if not ids:
                    break

                await session.execute(
                    delete(Notification).where(Notification.id.in_(ids))
                )
                await retry_on_lock(session.commit)
        except Exception as e:
            logger.error(
                f"Cleanup batch {result.batches + 1} failed after {result.deleted} deletions: {e}"
            )
            raise FatalBatchFailure(f"Retention sweep aborted: {e}") from e

        result.deleted += len(ids)
        result.batch_sizes.append(len(ids))
        logger.info(f"Deleted {len(ids)} notifications")

        if len(ids) < batch_size:
            break

    if result.deleted:
        logger.info(f"Cleanup complete. Total deleted: {result.deleted}")
    else:
        logger.info("No old notifications to delete")
    return result


async def handle_schedule_tick(ctx: RelayContext, payload=None) -> SweepResult:
    """Scheduled daily run of the retention sweep."""
    return await sweep_expired_notifications(
        ctx.session_factory,
        retention_days=ctx.settings.retention_days,
        batch_size=ctx.settings.sweep_batch_size,
    )
