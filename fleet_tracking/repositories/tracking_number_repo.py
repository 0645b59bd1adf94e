from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_tracking.models.orm.tracking_number import TrackingNumber, TrackingStatus


def _parse_uuid(value: str) -> UUID | None:
    try:
        return UUID(value)
    except (ValueError, AttributeError, TypeError):
        return None


async def tracking_number_exists(db: AsyncSession, code: str) -> bool:
    """Soft-deleted rows count: a retired code is never handed out again."""
    result = await db.execute(
        select(TrackingNumber.id).where(TrackingNumber.tracking_number == code).limit(1)
    )
    return result.scalar_one_or_none() is not None


async def get_by_id(
    db: AsyncSession, tracking_number_id: UUID, *, include_deleted: bool = False
) -> TrackingNumber | None:
    query = select(TrackingNumber).where(TrackingNumber.id == tracking_number_id)
    if not include_deleted:
        query = query.where(TrackingNumber.deleted_at.is_(None))
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def find_by_any_identifier(
    db: AsyncSession, identifier: str, company_id: UUID | None = None
) -> TrackingNumber | None:
    """Match public id, tracking number or internal id, in that order."""
    clauses = [
        TrackingNumber.public_id == identifier,
        TrackingNumber.tracking_number == identifier,
    ]
    as_uuid = _parse_uuid(identifier)
    if as_uuid is not None:
        clauses.append(TrackingNumber.id == as_uuid)

    query = select(TrackingNumber).where(
        or_(*clauses), TrackingNumber.deleted_at.is_(None)
    )
    if company_id is not None:
        query = query.where(TrackingNumber.company_id == company_id)
    result = await db.execute(query.limit(3))
    matches = list(result.scalars().all())
    if not matches:
        return None

    def _precedence(record: TrackingNumber) -> int:
        if record.public_id == identifier:
            return 0
        if record.tracking_number == identifier:
            return 1
        return 2

    return min(matches, key=_precedence)


async def list_for_company(
    db: AsyncSession,
    company_id: UUID | None,
    *,
    page: int = 1,
    per_page: int = 50,
) -> tuple[list[TrackingNumber], int]:
    base = select(TrackingNumber).where(
        TrackingNumber.company_id == company_id,
        TrackingNumber.deleted_at.is_(None),
    )
    count_result = await db.execute(
        select(func.count()).select_from(base.subquery())
    )
    total = count_result.scalar() or 0

    result = await db.execute(
        base.order_by(TrackingNumber.created_at.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return list(result.scalars().all()), total


async def create(db: AsyncSession, record: TrackingNumber) -> TrackingNumber:
    db.add(record)
    await db.flush()
    return record


async def set_current_status(
    db: AsyncSession, record: TrackingNumber, status: TrackingStatus
) -> TrackingNumber:
    record.status_id = status.id
    await db.flush()
    return record


async def soft_delete(db: AsyncSession, record: TrackingNumber) -> TrackingNumber:
    record.deleted_at = datetime.now(timezone.utc)
    await db.flush()
    return record
