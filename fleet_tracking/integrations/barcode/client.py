import asyncio
import base64
import logging
from typing import Protocol, runtime_checkable

import httpx

from fleet_tracking.core.config import settings

logger = logging.getLogger(__name__)

QRCODE = "QRCODE"
PDF417 = "PDF417"
SYMBOLOGIES = (QRCODE, PDF417)


@runtime_checkable
class BarcodeEncoder(Protocol):
    async def encode(self, payload: str, symbology: str) -> str | None: ...


class BarcodeClient:
    """Renders codes through the external barcode service.

    Returns the rendered PNG as base64 text, or None when the service is not
    configured or keeps failing.
    """

    def __init__(self) -> None:
        self._base_url = settings.barcode_service_url.rstrip("/")
        self._api_key = settings.barcode_service_api_key
        self._timeout = settings.barcode_timeout_seconds

    @property
    def is_configured(self) -> bool:
        return bool(self._base_url)

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "image/png", "Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def encode(self, payload: str, symbology: str) -> str | None:
        if symbology not in SYMBOLOGIES:
            raise ValueError(f"Unsupported symbology '{symbology}'")
        if not self.is_configured:
            logger.debug("Barcode service not configured, skipping %s", symbology)
            return None

        for attempt in range(3):
            try:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    resp = await client.post(
                        f"{self._base_url}/encode",
                        headers=self._headers(),
                        json={"data": payload, "symbology": symbology, "format": "png"},
                    )

                if resp.status_code == 429 and attempt < 2:
                    wait = 2 ** attempt
                    logger.warning("Barcode service rate limit, retrying in %ds", wait)
                    await asyncio.sleep(wait)
                    continue

                if resp.status_code >= 400:
                    logger.error(
                        "Barcode service encode %s failed (%d): %s",
                        symbology, resp.status_code, resp.text,
                    )
                    return None

                return base64.b64encode(resp.content).decode("ascii")

            except httpx.TimeoutException:
                logger.warning("Barcode service timeout (attempt %d)", attempt + 1)
                if attempt < 2:
                    await asyncio.sleep(2 ** attempt)
            except httpx.HTTPError:
                logger.exception("Barcode service error")
                return None

        return None


class FakeBarcodeEncoder:
    """Test fake recording every encode call."""

    def __init__(self, fail: bool = False):
        self.calls: list[tuple[str, str]] = []
        self.fail = fail

    async def encode(self, payload: str, symbology: str) -> str | None:
        self.calls.append((payload, symbology))
        if self.fail:
            return None
        return base64.b64encode(f"{symbology}:{payload}".encode()).decode("ascii")
