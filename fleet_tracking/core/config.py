import re
from urllib.parse import urlparse

from pydantic_settings import BaseSettings

_REGION_RE = re.compile(r"^[A-Za-z]{2,3}$")


class Settings(BaseSettings):
    # Database
    db_name: str = "fleet_tracking"
    db_user: str = "fleet"
    db_password: str = "CHANGE_ME"
    db_host: str = "db"
    db_port: int = 5432
    db_ssl: bool = False
    db_statement_timeout_ms: int = 30000

    # Tracking numbers
    tracking_default_region: str = "SG"
    tracking_number_length: int = 10
    tracking_fallback_prefix: str = "FLB"
    tracking_max_generation_attempts: int = 25
    tracking_max_insert_attempts: int = 3

    # Barcode / QR rendering service
    barcode_service_url: str = ""
    barcode_service_api_key: str = ""
    barcode_timeout_seconds: float = 10.0

    # App
    debug: bool = False

    @property
    def database_url(self) -> str:
        base = (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )
        return f"{base}?ssl=require" if self.db_ssl else base

    model_config = {"env_file": ".env", "extra": "ignore"}

    def validate_settings(self) -> None:
        """Raise if the configuration cannot produce valid tracking numbers."""
        if not self.debug and self.db_password == "CHANGE_ME":
            raise ValueError("db_password must be changed from default")
        if not _REGION_RE.match(self.tracking_default_region):
            raise ValueError("tracking_default_region must be a 2-3 letter region code")
        if self.tracking_number_length < 4:
            raise ValueError("tracking_number_length must be at least 4 digits")
        if not self.tracking_fallback_prefix.isalpha():
            raise ValueError("tracking_fallback_prefix must be alphabetic")
        if self.tracking_max_generation_attempts < 1:
            raise ValueError("tracking_max_generation_attempts must be positive")
        if self.tracking_max_insert_attempts < 1:
            raise ValueError("tracking_max_insert_attempts must be positive")
        if self.barcode_service_url:
            parsed = urlparse(self.barcode_service_url)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ValueError("barcode_service_url must be a valid http(s) URL")


settings = Settings()
