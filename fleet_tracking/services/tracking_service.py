import logging
import random
import uuid
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_tracking.core.config import settings
from fleet_tracking.core.context import TenantContext
from fleet_tracking.core.exceptions import (
    NoStatusHistoryError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from fleet_tracking.core.identifiers import generate_public_id
from fleet_tracking.integrations.barcode.client import PDF417, QRCODE, BarcodeEncoder
from fleet_tracking.mappers.tracking_number import tracking_number_to_dict
from fleet_tracking.models.orm.tracking_number import TrackingNumber, TrackingStatus
from fleet_tracking.repositories import owner_repo, tracking_number_repo, tracking_status_repo
from fleet_tracking.services.code_generator import generate_unique_tracking_number
from fleet_tracking.services.status_resolver import find_latest, resolve_last_status

logger = logging.getLogger(__name__)

FILLABLE_FIELDS = ("region", "location")

STATUS_CODES = frozenset({
    "CREATED",
    "PENDING",
    "DISPATCHED",
    "ENROUTE",
    "IN_TRANSIT",
    "OUT_FOR_DELIVERY",
    "ARRIVED",
    "DELIVERED",
    "COMPLETED",
    "FAILED",
    "CANCELED",
    "RETURNED",
})

ZERO_POINT = (0.0, 0.0)


def _fillable(values: Mapping) -> dict:
    dropped = [key for key in values if key not in FILLABLE_FIELDS]
    if dropped:
        logger.debug("Ignoring non-fillable tracking number fields: %s", ", ".join(map(str, dropped)))
    return {key: value for key, value in values.items() if key in FILLABLE_FIELDS}


def parse_location(value) -> tuple[float, float] | None:
    """Accept ``{"latitude": .., "longitude": ..}`` or a ``(lat, lon)`` pair."""
    if value is None:
        return None
    try:
        if isinstance(value, Mapping):
            lat, lon = float(value["latitude"]), float(value["longitude"])
        elif isinstance(value, Sequence) and not isinstance(value, str) and len(value) == 2:
            lat, lon = float(value[0]), float(value[1])
        else:
            raise ValidationError("Location must be a latitude/longitude pair")
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationError("Location must be a latitude/longitude pair") from e
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        raise ValidationError("Location is out of range")
    return lat, lon


def _normalize_region(region: str | None) -> str:
    region = (region or settings.tracking_default_region).strip().upper()
    if not region.isalpha() or not 2 <= len(region) <= 3:
        raise ValidationError(f"Invalid region '{region}'")
    return region


async def allocate(
    db: AsyncSession,
    tenant: TenantContext,
    values: Mapping | None = None,
    owner: owner_repo.Owner | None = None,
    *,
    encoder: BarcodeEncoder,
    rng: random.Random | None = None,
) -> TrackingNumber:
    """Create a tracking number and its initial CREATED status.

    The record and its first status are written together inside a SAVEPOINT
    of the caller's session; a failed write undoes only that SAVEPOINT and
    raises PersistenceError. The outer transaction belongs to the caller.
    Marking the owner as ``created`` afterwards is best-effort and never
    fails the call.
    """
    values = _fillable(values or {})
    region = _normalize_region(values.get("region"))
    location = parse_location(values.get("location"))

    kind = None
    owner_id = None
    owner_status = None
    if owner is not None:
        kind = owner_repo.kind_for_owner(owner)
        owner_id = owner.id
        owner_status = owner.status

    record_id = uuid.uuid4()
    created_at = datetime.now(timezone.utc)
    label = kind.label if kind else "Tracking number"
    status_lat, status_lon = location or ZERO_POINT

    async def _exists(code: str) -> bool:
        return await tracking_number_repo.tracking_number_exists(db, code)

    payloads: tuple[str | None, str | None] | None = None
    max_attempts = settings.tracking_max_insert_attempts
    for attempt in range(1, max_attempts + 1):
        code = await generate_unique_tracking_number(
            _exists,
            region=region,
            length=settings.tracking_number_length,
            company_name=tenant.company_name,
            rng=rng,
        )
        if payloads is None:
            target = str(owner_id or record_id)
            payloads = (
                await encoder.encode(target, QRCODE),
                await encoder.encode(target, PDF417),
            )

        record = TrackingNumber(
            id=record_id,
            public_id=generate_public_id("track"),
            tracking_number=code,
            company_id=tenant.company_id,
            api_key=tenant.credential_label,
            owner_id=owner_id,
            owner_type=kind.name if kind else None,
            region=region,
            qr_code=payloads[0],
            barcode=payloads[1],
            latitude=location[0] if location else None,
            longitude=location[1] if location else None,
            created_at=created_at,
        )
        status = TrackingStatus(
            id=uuid.uuid4(),
            public_id=generate_public_id("status"),
            tracking_number_id=record_id,
            company_id=tenant.company_id,
            status=f"{label} created",
            details=f"New {label.lower()} created.",
            code="CREATED",
            latitude=status_lat,
            longitude=status_lon,
            created_at=created_at,
        )

        # One SAVEPOINT per attempt: a rejected insert leaves the caller's pending work alone.
        try:
            async with db.begin_nested():
                await tracking_number_repo.create(db, record)
                await tracking_status_repo.create(db, status)
                await tracking_number_repo.set_current_status(db, record, status)
        except IntegrityError:
            logger.warning(
                "Tracking number %s rejected by the database (attempt %d/%d)",
                code, attempt, max_attempts,
            )
            continue
        except SQLAlchemyError as e:
            logger.exception("Failed to persist tracking number %s", code)
            raise PersistenceError() from e
        break
    else:
        raise PersistenceError(
            f"Failed to persist tracking number after {max_attempts} attempts"
        )

    if kind is not None and kind.status_writable and owner_status != "created":
        try:
            async with db.begin_nested():
                await owner_repo.set_status_direct(db, kind, owner_id, "created")
        except SQLAlchemyError:
            logger.exception("Failed to mark %s %s as created", kind.name, owner_id)

    await db.refresh(record)
    logger.info(
        "Allocated tracking number %s for %s %s",
        record.tracking_number, record.owner_type or "no owner", owner_id or "-",
    )
    return record


async def _current_status(db: AsyncSession, record: TrackingNumber) -> TrackingStatus:
    status = None
    if record.status_id is not None:
        status = await tracking_status_repo.get_by_id(db, record.status_id)
    if status is None:
        status = await find_latest(db, record)
    if status is None:
        raise NoStatusHistoryError(record.id)
    return status


async def update_owner_status(
    db: AsyncSession,
    record: TrackingNumber,
    status: TrackingStatus | None = None,
) -> TrackingNumber:
    """Copy the status code onto the owner, writing only when it changed."""
    if status is None:
        status = await _current_status(db, record)
    if record.owner_type is None or record.owner_id is None:
        return record

    kind = owner_repo.kind_for_type(record.owner_type)
    if not kind.status_writable:
        return record

    owner = await owner_repo.get_owner(db, record.owner_type, record.owner_id)
    new_status = status.code.lower()
    if owner is not None and owner.status != new_status:
        owner.status = new_status
        await db.flush()
        logger.info("Updated %s %s status to %s", kind.name, owner.id, new_status)
    return record


async def record_status(
    db: AsyncSession,
    tenant: TenantContext,
    record: TrackingNumber,
    *,
    status: str,
    code: str,
    details: str | None = None,
    location=None,
) -> TrackingStatus:
    code = code.strip().upper()
    if code not in STATUS_CODES:
        raise ValidationError(f"Unknown status code '{code}'")
    point = parse_location(location)
    if point is None:
        point = (record.latitude or 0.0, record.longitude or 0.0)

    event = TrackingStatus(
        id=uuid.uuid4(),
        public_id=generate_public_id("status"),
        tracking_number_id=record.id,
        company_id=tenant.company_id,
        status=status,
        code=code,
        details=details,
        latitude=point[0],
        longitude=point[1],
        created_at=datetime.now(timezone.utc),
    )
    try:
        async with db.begin_nested():
            await tracking_status_repo.create(db, event)
            await tracking_number_repo.set_current_status(db, record, event)
    except SQLAlchemyError as e:
        logger.exception("Failed to record status %s for %s", code, record.id)
        raise PersistenceError("Failed to record tracking status") from e

    await update_owner_status(db, record, event)
    await db.refresh(record)
    return event


async def find_by_any_identifier(
    db: AsyncSession, identifier: str, company_id: UUID | None = None
) -> TrackingNumber | None:
    return await tracking_number_repo.find_by_any_identifier(db, identifier, company_id)


async def find_by_any_identifier_or_fail(
    db: AsyncSession, identifier: str, company_id: UUID | None = None
) -> TrackingNumber:
    record = await find_by_any_identifier(db, identifier, company_id)
    if record is None:
        logger.info("Tracking number %s not found", identifier)
        raise NotFoundError("Tracking number not found")
    return record


async def delete(db: AsyncSession, record: TrackingNumber) -> TrackingNumber:
    """Soft delete: hidden from lookups, still reserved for uniqueness."""
    await tracking_number_repo.soft_delete(db, record)
    await db.refresh(record)
    logger.info("Deleted tracking number %s", record.tracking_number)
    return record


async def list_tracking_numbers(
    db: AsyncSession,
    company_id: UUID | None,
    *,
    page: int = 1,
    per_page: int = 50,
) -> tuple[list[dict], int]:
    records, total = await tracking_number_repo.list_for_company(
        db, company_id, page=page, per_page=per_page
    )
    return [await get_tracking_number_data(db, record) for record in records], total


async def list_statuses(db: AsyncSession, record: TrackingNumber) -> list[TrackingStatus]:
    return await tracking_status_repo.list_for_tracking_number(db, record.id)


async def find_owner(
    db: AsyncSession, company_id: UUID | None, public_id: str
) -> owner_repo.Owner:
    owner = await owner_repo.find_by_public_id(db, public_id, company_id)
    if owner is None:
        raise NotFoundError(f"Owner '{public_id}' not found")
    return owner


async def find_owner_by_code(
    db: AsyncSession, company_id: UUID | None, code: str
) -> owner_repo.Owner:
    """Resolve the id carried by a tracking QR code back to its owner."""
    try:
        owner_id = UUID(code)
    except (ValueError, AttributeError) as e:
        raise ValidationError("Unable to find QR code value") from e
    owner = await owner_repo.find_by_id(db, owner_id, company_id)
    if owner is None:
        raise ValidationError("Unable to find QR code value")
    return owner


async def get_tracking_number_data(db: AsyncSession, record: TrackingNumber) -> dict:
    last_status = await resolve_last_status(db, record)
    owner_public_id = None
    if record.owner_type and record.owner_id:
        owner = await owner_repo.get_owner(db, record.owner_type, record.owner_id)
        owner_public_id = owner.public_id if owner else None
    return tracking_number_to_dict(record, last_status, owner_public_id)
