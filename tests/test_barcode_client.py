"""Tests for the barcode service client and its fake."""
import base64
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from fleet_tracking.integrations.barcode.client import (
    PDF417,
    QRCODE,
    BarcodeClient,
    BarcodeEncoder,
    FakeBarcodeEncoder,
)


def _mock_http_client(response=None, side_effect=None):
    client = AsyncMock()
    client.post = AsyncMock(return_value=response, side_effect=side_effect)
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    return client


def _response(status_code: int, content: bytes = b"") -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.content = content
    resp.text = content.decode(errors="replace")
    return resp


@pytest.fixture
def configured(monkeypatch):
    from fleet_tracking.core.config import settings
    monkeypatch.setattr(settings, "barcode_service_url", "https://barcodes.example.com/")
    monkeypatch.setattr(settings, "barcode_service_api_key", "secret")


class TestFakeBarcodeEncoder:
    @pytest.mark.asyncio
    async def test_implements_protocol(self):
        assert isinstance(FakeBarcodeEncoder(), BarcodeEncoder)

    @pytest.mark.asyncio
    async def test_records_calls(self):
        encoder = FakeBarcodeEncoder()
        payload = await encoder.encode("abc", QRCODE)
        assert encoder.calls == [("abc", QRCODE)]
        assert base64.b64decode(payload) == b"QRCODE:abc"

    @pytest.mark.asyncio
    async def test_failure_returns_none(self):
        encoder = FakeBarcodeEncoder(fail=True)
        assert await encoder.encode("abc", PDF417) is None
        assert encoder.calls == [("abc", PDF417)]


class TestBarcodeClient:
    def test_implements_protocol(self):
        assert isinstance(BarcodeClient(), BarcodeEncoder)

    def test_not_configured_by_default(self):
        assert BarcodeClient().is_configured is False

    @pytest.mark.asyncio
    async def test_unconfigured_returns_none(self):
        with patch("fleet_tracking.integrations.barcode.client.httpx.AsyncClient") as mock_cls:
            assert await BarcodeClient().encode("abc", QRCODE) is None
        mock_cls.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_symbology_rejected(self):
        with pytest.raises(ValueError):
            await BarcodeClient().encode("abc", "EAN13")

    @pytest.mark.asyncio
    async def test_success_returns_base64(self, configured):
        http = _mock_http_client(_response(200, b"\x89PNG"))
        with patch("fleet_tracking.integrations.barcode.client.httpx.AsyncClient", return_value=http):
            result = await BarcodeClient().encode("abc", PDF417)

        assert result == base64.b64encode(b"\x89PNG").decode("ascii")
        args, kwargs = http.post.call_args
        assert args[0] == "https://barcodes.example.com/encode"
        assert kwargs["json"] == {"data": "abc", "symbology": "PDF417", "format": "png"}
        assert kwargs["headers"]["Authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_error_status_returns_none(self, configured):
        http = _mock_http_client(_response(500, b"boom"))
        with patch("fleet_tracking.integrations.barcode.client.httpx.AsyncClient", return_value=http):
            assert await BarcodeClient().encode("abc", QRCODE) is None

    @pytest.mark.asyncio
    async def test_http_error_returns_none(self, configured):
        http = _mock_http_client(side_effect=httpx.ConnectError("refused"))
        with patch("fleet_tracking.integrations.barcode.client.httpx.AsyncClient", return_value=http):
            assert await BarcodeClient().encode("abc", QRCODE) is None

    @pytest.mark.asyncio
    @patch("fleet_tracking.integrations.barcode.client.asyncio.sleep", new_callable=AsyncMock)
    async def test_rate_limit_retried(self, mock_sleep, configured):
        http = _mock_http_client()
        http.post.side_effect = [_response(429), _response(200, b"png")]
        with patch("fleet_tracking.integrations.barcode.client.httpx.AsyncClient", return_value=http):
            result = await BarcodeClient().encode("abc", QRCODE)

        assert result == base64.b64encode(b"png").decode("ascii")
        assert http.post.await_count == 2
        mock_sleep.assert_awaited_once_with(1)

    @pytest.mark.asyncio
    @patch("fleet_tracking.integrations.barcode.client.asyncio.sleep", new_callable=AsyncMock)
    async def test_timeouts_give_up_after_three_attempts(self, mock_sleep, configured):
        http = _mock_http_client(side_effect=httpx.ReadTimeout("slow"))
        with patch("fleet_tracking.integrations.barcode.client.httpx.AsyncClient", return_value=http):
            assert await BarcodeClient().encode("abc", QRCODE) is None
        assert http.post.await_count == 3
