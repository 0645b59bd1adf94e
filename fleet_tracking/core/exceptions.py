class TrackingError(Exception):
    """Base error for tracking operations.

    ``status_code`` is only consulted by the API exception handler; the
    services never deal in HTTP.
    """

    status_code: int = 500

    def __init__(self, detail: str = "Tracking operation failed"):
        super().__init__(detail)
        self.detail = detail


class ValidationError(TrackingError):
    status_code = 400

    def __init__(self, detail: str = "Invalid input"):
        super().__init__(detail)


class UnsupportedOwnerKindError(ValidationError):
    def __init__(self, owner_type: str):
        super().__init__(detail=f"Unsupported owner type '{owner_type}'")
        self.owner_type = owner_type


class NotFoundError(TrackingError):
    status_code = 404

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(detail)


class GenerationExhaustedError(TrackingError):
    status_code = 503

    def __init__(self, attempts: int):
        super().__init__(
            detail=f"Could not generate a unique tracking number after {attempts} attempts"
        )
        self.attempts = attempts


class PersistenceError(TrackingError):
    status_code = 500

    def __init__(self, detail: str = "Failed to persist tracking number"):
        super().__init__(detail)


class NoStatusHistoryError(TrackingError):
    status_code = 500

    def __init__(self, tracking_number_id):
        super().__init__(
            detail=f"Tracking number {tracking_number_id} has no status history"
        )
        self.tracking_number_id = tracking_number_id
