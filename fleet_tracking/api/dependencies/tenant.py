from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_tracking.api.dependencies.database import get_db
from fleet_tracking.core.context import TenantContext
from fleet_tracking.core.exceptions import NotFoundError, ValidationError
from fleet_tracking.integrations.barcode.client import BarcodeClient, BarcodeEncoder
from fleet_tracking.models.orm.company import Company


async def get_tenant(
    x_company_id: str | None = Header(default=None),
    x_api_key_label: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> TenantContext:
    """Resolve the ``X-Company-ID`` header (uuid or public id) to a tenant."""
    if not x_company_id:
        raise ValidationError("Missing X-Company-ID header")

    try:
        condition = Company.id == UUID(x_company_id)
    except ValueError:
        condition = Company.public_id == x_company_id
    result = await db.execute(select(Company).where(condition))
    company = result.scalar_one_or_none()
    if company is None:
        raise NotFoundError("Company not found")

    return TenantContext(
        company_id=company.id,
        company_name=company.name,
        api_key=x_api_key_label,
    )


def get_encoder() -> BarcodeEncoder:
    return BarcodeClient()
