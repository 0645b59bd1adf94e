from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_tracking.models.orm.tracking_number import TrackingStatus


async def create(db: AsyncSession, status: TrackingStatus) -> TrackingStatus:
    db.add(status)
    await db.flush()
    return status


async def get_by_id(db: AsyncSession, status_id: UUID) -> TrackingStatus | None:
    result = await db.execute(select(TrackingStatus).where(TrackingStatus.id == status_id))
    return result.scalar_one_or_none()


async def list_for_tracking_number(
    db: AsyncSession, tracking_number_id: UUID
) -> list[TrackingStatus]:
    result = await db.execute(
        select(TrackingStatus)
        .where(TrackingStatus.tracking_number_id == tracking_number_id)
        .order_by(TrackingStatus.created_at.asc())
    )
    return list(result.scalars().all())


async def list_latest(db: AsyncSession, tracking_number_id: UUID) -> list[TrackingStatus]:
    """Every event sharing the newest ``created_at``; usually exactly one."""
    newest = (
        select(func.max(TrackingStatus.created_at))
        .where(TrackingStatus.tracking_number_id == tracking_number_id)
        .scalar_subquery()
    )
    result = await db.execute(
        select(TrackingStatus).where(
            TrackingStatus.tracking_number_id == tracking_number_id,
            TrackingStatus.created_at == newest,
        )
    )
    return list(result.scalars().all())
