from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_tracking.api.dependencies.database import get_db
from fleet_tracking.api.dependencies.tenant import get_encoder, get_tenant
from fleet_tracking.core.context import TenantContext
from fleet_tracking.integrations.barcode.client import BarcodeEncoder
from fleet_tracking.mappers.tracking_number import (
    deleted_to_dict,
    owner_to_dict,
    tracking_status_to_dict,
)
from fleet_tracking.models.dto.tracking_number import (
    DecodeQRRequest,
    DeletedResponse,
    OwnerResponse,
    TrackingNumberCreate,
    TrackingNumberListResponse,
    TrackingNumberResponse,
    TrackingStatusCreate,
    TrackingStatusResponse,
)
from fleet_tracking.repositories import owner_repo
from fleet_tracking.services import tracking_service

router = APIRouter(prefix="/tracking-numbers", tags=["tracking-numbers"])


@router.post("", response_model=TrackingNumberResponse, status_code=201)
async def create_tracking_number(
    body: TrackingNumberCreate,
    db: AsyncSession = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
    encoder: BarcodeEncoder = Depends(get_encoder),
):
    owner = None
    if body.owner:
        owner = await tracking_service.find_owner(db, tenant.company_id, body.owner)

    record = await tracking_service.allocate(
        db,
        tenant,
        body.model_dump(exclude={"owner"}, exclude_none=True),
        owner,
        encoder=encoder,
    )
    return await tracking_service.get_tracking_number_data(db, record)


@router.get("", response_model=TrackingNumberListResponse)
async def list_tracking_numbers(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    items, total = await tracking_service.list_tracking_numbers(
        db, tenant.company_id, page=page, per_page=per_page
    )
    return {"items": items, "total": total, "page": page, "per_page": per_page}


@router.post("/from-qr", response_model=OwnerResponse)
async def decode_qr(
    body: DecodeQRRequest,
    db: AsyncSession = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    owner = await tracking_service.find_owner_by_code(db, tenant.company_id, body.code)
    return owner_to_dict(owner, owner_repo.kind_for_owner(owner).name)


@router.get("/{identifier}", response_model=TrackingNumberResponse)
async def get_tracking_number(
    identifier: str,
    db: AsyncSession = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    record = await tracking_service.find_by_any_identifier_or_fail(
        db, identifier, tenant.company_id
    )
    return await tracking_service.get_tracking_number_data(db, record)


@router.get("/{identifier}/statuses", response_model=list[TrackingStatusResponse])
async def list_tracking_statuses(
    identifier: str,
    db: AsyncSession = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    record = await tracking_service.find_by_any_identifier_or_fail(
        db, identifier, tenant.company_id
    )
    statuses = await tracking_service.list_statuses(db, record)
    return [tracking_status_to_dict(s) for s in statuses]


@router.post(
    "/{identifier}/statuses", response_model=TrackingStatusResponse, status_code=201
)
async def create_tracking_status(
    identifier: str,
    body: TrackingStatusCreate,
    db: AsyncSession = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    record = await tracking_service.find_by_any_identifier_or_fail(
        db, identifier, tenant.company_id
    )
    status = await tracking_service.record_status(
        db,
        tenant,
        record,
        status=body.status,
        code=body.code,
        details=body.details,
        location=body.location.model_dump() if body.location else None,
    )
    return tracking_status_to_dict(status)


@router.delete("/{identifier}", response_model=DeletedResponse)
async def delete_tracking_number(
    identifier: str,
    db: AsyncSession = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    record = await tracking_service.find_by_any_identifier_or_fail(
        db, identifier, tenant.company_id
    )
    record = await tracking_service.delete(db, record)
    return deleted_to_dict(record)
