import random
import uuid
from datetime import datetime, timezone

from fleet_tracking.core.context import TenantContext
from fleet_tracking.core.identifiers import generate_public_id
from fleet_tracking.models.orm.company import Company
from fleet_tracking.models.orm.entity import Entity
from fleet_tracking.models.orm.order import Order
from fleet_tracking.models.orm.tracking_number import TrackingNumber, TrackingStatus


def make_company(*, company_id=None, name="Acme Logistics"):
    return Company(
        id=company_id or uuid.uuid4(),
        public_id=generate_public_id("company"),
        name=name,
    )


def make_tenant(company: Company | None = None, *, api_key=None) -> TenantContext:
    if company is None:
        return TenantContext(api_key=api_key)
    return TenantContext(company_id=company.id, company_name=company.name, api_key=api_key)


def make_order(*, order_id=None, company_id=None, status="pending", public_id=None):
    return Order(
        id=order_id or uuid.uuid4(),
        public_id=public_id or generate_public_id("order"),
        company_id=company_id,
        status=status,
        notes=None,
    )


def make_entity(*, entity_id=None, company_id=None, status="pending", name="Parcel"):
    return Entity(
        id=entity_id or uuid.uuid4(),
        public_id=generate_public_id("entity"),
        company_id=company_id,
        name=name,
        description=None,
        status=status,
    )


def make_tracking_number(
    *,
    record_id=None,
    company_id=None,
    tracking_number="ACM0123456789US",
    owner_id=None,
    owner_type=None,
    status_id=None,
    region="US",
    deleted_at=None,
):
    now = datetime.now(timezone.utc)
    return TrackingNumber(
        id=record_id or uuid.uuid4(),
        public_id=generate_public_id("track"),
        tracking_number=tracking_number,
        company_id=company_id,
        api_key="console",
        owner_id=owner_id,
        owner_type=owner_type,
        region=region,
        qr_code=None,
        barcode=None,
        status_id=status_id,
        latitude=None,
        longitude=None,
        created_at=now,
        updated_at=now,
        deleted_at=deleted_at,
    )


def make_tracking_status(
    *,
    tracking_number_id,
    status_id=None,
    status="Order created",
    code="CREATED",
    created_at=None,
):
    return TrackingStatus(
        id=status_id or uuid.uuid4(),
        public_id=generate_public_id("status"),
        tracking_number_id=tracking_number_id,
        company_id=None,
        status=status,
        code=code,
        details=None,
        latitude=0.0,
        longitude=0.0,
        created_at=created_at or datetime.now(timezone.utc),
    )


# ── Test doubles ─────────────────────────────────────────────────────────────


class ScriptedRandom(random.Random):
    """Random source that replays fixed digit strings, one per generated code."""

    def __init__(self, *digit_strings: str):
        super().__init__(0)
        self._digits = iter("".join(digit_strings))

    def randint(self, a: int, b: int) -> int:
        return int(next(self._digits))
