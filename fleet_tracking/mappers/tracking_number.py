from fleet_tracking.models.orm.tracking_number import TrackingNumber, TrackingStatus
from fleet_tracking.services.status_resolver import LastStatus


def _location_to_dict(latitude: float | None, longitude: float | None) -> dict | None:
    if latitude is None or longitude is None:
        return None
    return {"latitude": latitude, "longitude": longitude}


def tracking_status_to_dict(status: TrackingStatus) -> dict:
    return {
        "id": status.public_id,
        "uuid": status.id,
        "status": status.status,
        "code": status.code,
        "details": status.details,
        "location": _location_to_dict(status.latitude, status.longitude),
        "created_at": status.created_at,
    }


def tracking_number_to_dict(
    record: TrackingNumber,
    last_status: LastStatus,
    owner_public_id: str | None = None,
) -> dict:
    return {
        "id": record.public_id,
        "uuid": record.id,
        "tracking_number": record.tracking_number,
        "region": record.region,
        "type": record.owner_type,
        "owner": owner_public_id,
        "qr_code": record.qr_code,
        "barcode": record.barcode,
        "location": _location_to_dict(record.latitude, record.longitude),
        "last_status": last_status.status,
        "last_status_code": last_status.code,
        "last_status_updated_at": last_status.updated_at,
        "created_at": record.created_at,
        "updated_at": record.updated_at,
    }


def deleted_to_dict(record: TrackingNumber) -> dict:
    return {
        "id": record.public_id,
        "object": "tracking_number",
        "time": record.deleted_at,
        "deleted": True,
    }


def owner_to_dict(owner, owner_type: str) -> dict:
    return {
        "id": owner.public_id,
        "uuid": owner.id,
        "type": owner_type,
        "status": owner.status,
        "name": getattr(owner, "name", None),
    }
