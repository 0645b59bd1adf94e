from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_tracking.core.exceptions import UnsupportedOwnerKindError
from fleet_tracking.models.orm.entity import Entity
from fleet_tracking.models.orm.order import Order

Owner = Order | Entity


@dataclass(frozen=True)
class OwnerKind:
    name: str
    label: str
    model: type
    status_writable: bool = True


# Lookup order matters for public-id resolution: orders first, then entities.
OWNER_KINDS: dict[str, OwnerKind] = {
    "order": OwnerKind(name="order", label="Order", model=Order),
    "entity": OwnerKind(name="entity", label="Entity", model=Entity),
}


def kind_for_owner(owner: object) -> OwnerKind:
    for kind in OWNER_KINDS.values():
        if type(owner) is kind.model:
            return kind
    raise UnsupportedOwnerKindError(type(owner).__name__)


def kind_for_type(owner_type: str) -> OwnerKind:
    kind = OWNER_KINDS.get(owner_type)
    if kind is None:
        raise UnsupportedOwnerKindError(owner_type)
    return kind


async def get_owner(db: AsyncSession, owner_type: str, owner_id: UUID) -> Owner | None:
    kind = kind_for_type(owner_type)
    return await db.get(kind.model, owner_id)


async def find_by_public_id(
    db: AsyncSession, public_id: str, company_id: UUID | None
) -> Owner | None:
    for kind in OWNER_KINDS.values():
        result = await db.execute(
            select(kind.model).where(
                kind.model.public_id == public_id,
                kind.model.company_id == company_id,
            )
        )
        owner = result.scalar_one_or_none()
        if owner is not None:
            return owner
    return None


async def find_by_id(
    db: AsyncSession, owner_id: UUID, company_id: UUID | None
) -> Owner | None:
    # QR decoding checks entities before orders.
    for name in ("entity", "order"):
        model = OWNER_KINDS[name].model
        result = await db.execute(
            select(model).where(model.id == owner_id, model.company_id == company_id)
        )
        owner = result.scalar_one_or_none()
        if owner is not None:
            return owner
    return None


async def set_status_direct(
    db: AsyncSession, kind: OwnerKind, owner_id: UUID, status: str
) -> None:
    """Write ``status`` with a plain UPDATE, skipping ORM update hooks."""
    await db.execute(
        update(kind.model).where(kind.model.id == owner_id).values(status=status)
    )
