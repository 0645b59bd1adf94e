from contextvars import ContextVar
from dataclasses import dataclass
from uuid import UUID

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


@dataclass(frozen=True)
class TenantContext:
    """Tenant scope passed explicitly into every tracking operation."""

    company_id: UUID | None = None
    company_name: str | None = None
    api_key: str | None = None

    @property
    def credential_label(self) -> str:
        return self.api_key or "console"
