from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from fleet_tracking.core.exceptions import NoStatusHistoryError
from fleet_tracking.models.orm.tracking_number import TrackingNumber, TrackingStatus
from fleet_tracking.repositories import tracking_status_repo


@dataclass(frozen=True)
class LastStatus:
    status: str
    code: str
    updated_at: datetime


def select_latest(
    statuses: Iterable[TrackingStatus], current_status_id: UUID | None = None
) -> TrackingStatus | None:
    """Newest event by ``created_at``.

    Equal timestamps go to the event the record points at, then to the
    highest id.
    """
    return max(
        statuses,
        key=lambda s: (s.created_at, s.id == current_status_id, s.id),
        default=None,
    )


def to_last_status(status: TrackingStatus) -> LastStatus:
    return LastStatus(status=status.status, code=status.code, updated_at=status.created_at)


async def find_latest(db: AsyncSession, record: TrackingNumber) -> TrackingStatus | None:
    candidates = await tracking_status_repo.list_latest(db, record.id)
    return select_latest(candidates, record.status_id)


async def resolve_last_status(db: AsyncSession, record: TrackingNumber) -> LastStatus:
    latest = await find_latest(db, record)
    if latest is None:
        raise NoStatusHistoryError(record.id)
    return to_last_status(latest)
