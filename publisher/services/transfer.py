"""HTTP adapter for platform API operations."""
from __future__ import annotations

import hashlib
import hmac
import json
import logging
from typing import Any, Dict, Mapping, Optional, Tuple

import httpx

from ..errors import TransferFailed
from ..models import PublishConfig, SessionContext, TransferResponse
from .device import DeviceProfile

logger = logging.getLogger(__name__)


def sign_fields(fields: Mapping[str, Any], key: str, key_version: str) -> Dict[str, str]:
    """Wrap fields into the signed_body envelope the API expects."""
    body = json.dumps(fields, separators=(",", ":"))
    digest = hmac.new(key.encode("utf-8"), body.encode("utf-8"), hashlib.sha256).hexdigest()
    return {
        "ig_sig_key_version": key_version,
        "signed_body": f"{digest}.{body}",
    }


def _decode_body(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {"status": "fail", "message": response.text.strip()}
    if isinstance(body, dict):
        return body
    return {"status": "fail", "message": str(body)}


class HTTPTransferClient:
    """
    HTTP client adapter for API calls.

    Implements ITransferClient protocol. Carries the session cookies, user
    agent and request signing; knows nothing about the upload workflow.
    """

    def __init__(
        self,
        session: SessionContext,
        device: Optional[DeviceProfile] = None,
        config: Optional[PublishConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._session = session
        self._device = device or DeviceProfile.from_string()
        self._config = config or PublishConfig()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            base_url=self._config.api_url,
            timeout=self._config.timeout,
            cookies=dict(self._session.cookies),
            headers={
                "User-Agent": self._device.user_agent(self._config.user_agent_version),
                "Accept-Language": "en-US",
                "X-IG-Capabilities": "3brTBw==",
                "X-IG-Connection-Type": "WIFI",
            },
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()
            self._client = None

    def _require_client(self) -> httpx.AsyncClient:
        if not self._client:
            raise RuntimeError("HTTPTransferClient not initialized. Use 'async with' context.")
        return self._client

    async def send(
        self,
        endpoint: str,
        fields: Mapping[str, Any],
        multipart: bool = False,
        signed: bool = True,
        files: Optional[Mapping[str, Tuple[str, bytes, str]]] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> TransferResponse:
        client = self._require_client()

        if signed:
            data = sign_fields(
                fields,
                self._config.signature_key,
                self._config.signature_key_version,
            )
        else:
            data = {key: _form_value(value) for key, value in fields.items()}

        logger.debug("POST %s (multipart=%s signed=%s)", endpoint, multipart, signed)
        try:
            if multipart:
                response = await client.post(
                    endpoint, data=data, files=dict(files or {}), params=params
                )
            else:
                response = await client.post(endpoint, data=data, params=params)
        except (httpx.RequestError, httpx.TimeoutException) as exc:
            raise TransferFailed(f"POST {endpoint} failed: {exc}") from exc

        result = TransferResponse(response.status_code, _decode_body(response))
        logger.debug("POST %s -> %d", endpoint, response.status_code)
        return result

    async def send_bytes(
        self,
        url: str,
        data: bytes,
        headers: Mapping[str, str],
    ) -> TransferResponse:
        client = self._require_client()
        try:
            response = await client.post(url, content=data, headers=dict(headers))
        except (httpx.RequestError, httpx.TimeoutException) as exc:
            raise TransferFailed(f"POST {url} failed: {exc}") from exc

        logger.debug("POST %s (%d bytes) -> %d", url, len(data), response.status_code)
        return TransferResponse(response.status_code, _decode_body(response))


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)
