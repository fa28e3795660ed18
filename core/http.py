"""
Core Module - JSON HTTP Client.

============================================================
PURPOSE
============================================================
Thin aiohttp wrapper shared by the sentiment provider, the
routing service client and the inference client.

- One lazily created ``aiohttp.ClientSession`` per client
- Per-request timeout (each external call carries its own)
- No retries: a failed call fails once
- Maps transport failures onto the pipeline error taxonomy

============================================================
ERROR MAPPING
============================================================
aiohttp.ClientError / asyncio.TimeoutError -> UpstreamUnavailableError
non-2xx status                            -> UpstreamUnavailableError
body that is not JSON                     -> MalformedResponseError

============================================================
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import aiohttp

from .exceptions import MalformedResponseError, UpstreamUnavailableError
from .logging_utils import mask_headers, mask_params, mask_url


logger = logging.getLogger(__name__)


class JsonHttpClient:
    """
    Shared JSON-over-HTTP client.

    Usage:
        async with JsonHttpClient() as http:
            data = await http.post_json(url, {"goal": "x"}, timeout=15)
    """

    DEFAULT_TIMEOUT = 15.0  # seconds

    def __init__(
        self,
        default_timeout: Optional[float] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.default_timeout = default_timeout or self.DEFAULT_TIMEOUT
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "JsonHttpClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    # ─────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────

    async def post_json(
        self,
        url: str,
        payload: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        source_name: str = "",
    ) -> Any:
        """POST a JSON body and decode the JSON answer (``None`` if empty)."""
        return await self._request(
            "POST", url,
            payload=payload,
            headers=headers,
            timeout=timeout,
            source_name=source_name,
        )

    async def get_json(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        source_name: str = "",
    ) -> Any:
        """GET and decode the JSON answer (``None`` if empty)."""
        return await self._request(
            "GET", url,
            headers=headers,
            timeout=timeout,
            source_name=source_name,
        )

    async def close(self) -> None:
        """Close the underlying session if this client created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    # ─────────────────────────────────────────────────────────────
    # Internal methods
    # ─────────────────────────────────────────────────────────────

    async def _request(
        self,
        method: str,
        url: str,
        payload: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        source_name: str = "",
    ) -> Any:
        session = await self._get_session()
        request_timeout = aiohttp.ClientTimeout(total=timeout or self.default_timeout)
        safe_url = mask_url(url)

        logger.debug(
            f"[{source_name}] {method} {safe_url} "
            f"headers={mask_headers(headers or {})} body={mask_params(payload or {})}"
        )

        try:
            async with session.request(
                method,
                url,
                json=payload,
                headers=headers,
                timeout=request_timeout,
            ) as response:
                text = await response.text()

                if not 200 <= response.status < 300:
                    raise UpstreamUnavailableError(
                        f"{source_name or 'upstream'} returned HTTP {response.status}",
                        source_name=source_name,
                        status_code=response.status,
                        url=safe_url,
                        provider_message=_provider_message(text),
                        details={
                            "reason": response.reason,
                            "response": text[:500],
                        },
                    )
        except asyncio.TimeoutError:
            raise UpstreamUnavailableError(
                f"Timeout after {request_timeout.total}s",
                source_name=source_name,
                url=safe_url,
            )
        except aiohttp.ClientError as e:
            raise UpstreamUnavailableError(
                f"Network error: {e}",
                source_name=source_name,
                url=safe_url,
            )
        except UnicodeDecodeError:
            raise MalformedResponseError(
                "Response body is not valid text",
                source_name=source_name,
                details={"url": safe_url},
            )

        if not text.strip():
            return None

        try:
            return json.loads(text)
        except ValueError:
            raise MalformedResponseError(
                "Response body is not JSON",
                source_name=source_name,
                raw_data=text,
            )


def _provider_message(text: str) -> Optional[str]:
    """Pull ``error.message`` (or ``message``) out of an error body."""
    try:
        body = json.loads(text)
    except (ValueError, TypeError):
        return None

    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    if body.get("message"):
        return str(body["message"])
    return None


def format_http_error(error: BaseException) -> str:
    """
    Human-readable one-liner for any failure in the pipeline.

    Joins status, status text, provider message and exception
    message with `` - ``, skipping whatever is missing.
    """
    if isinstance(error, UpstreamUnavailableError):
        parts = [
            f"status {error.status_code}" if error.status_code else None,
            error.details.get("reason"),
            error.provider_message,
            error.message,
        ]
    else:
        parts = [str(error) or type(error).__name__]

    seen = []
    for part in parts:
        if part and part not in seen:
            seen.append(str(part))
    return " - ".join(seen)
