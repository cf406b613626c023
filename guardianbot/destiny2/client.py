"""Bungie.net Platform API client.

Every Bungie endpoint answers with one of two shapes: the JSON envelope
(``ErrorCode``, ``ErrorStatus``, ``Message``, ..., ``Response``) or, on some
failure modes such as maintenance pages, a non-JSON body where only the HTTP
status code means anything. An HTTP 200 is therefore not a success on its
own; only ``ErrorCode == 1`` is.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from functools import lru_cache
from typing import Any, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from .errors import (
    APIError,
    DecodeError,
    NotFound,
    RequestCancelled,
    Unauthorized,
    UnknownAPIError,
    WebAuthRequired,
)
from .options import PreparedRequest, RequestOption
from .services import Destiny2Service, GroupV2Service, UserService

logger = logging.getLogger(__name__)

T = TypeVar("T")

BASE_URL = "https://www.bungie.net/Platform"

ERROR_CODE_SUCCESS = 1
ERROR_CODE_NOT_FOUND = 21
ERROR_CODE_WEB_AUTH_REQUIRED = 99

_ERRORS_BY_CODE: dict[int, type[APIError]] = {
    ERROR_CODE_NOT_FOUND: NotFound,
    ERROR_CODE_WEB_AUTH_REQUIRED: WebAuthRequired,
}

_ERRORS_BY_STATUS: dict[int, type[APIError]] = {
    401: Unauthorized,
    404: NotFound,
}


@lru_cache(maxsize=64)
def _adapter(dest: Any) -> TypeAdapter[Any]:
    return TypeAdapter(dest)


def _media_type(response: httpx.Response) -> str:
    return response.headers.get("content-type", "").split(";", 1)[0].strip().lower()


class Destiny2Client:
    """Client for the Bungie.net Platform API.

    The underlying ``httpx.AsyncClient`` is either passed in (and then left
    open on :meth:`close`) or created here and owned by this instance.
    """

    def __init__(
        self,
        api_key: str,
        *,
        http: httpx.AsyncClient | None = None,
        base_url: str = BASE_URL,
        timeout: float = 10.0,
    ) -> None:
        if not api_key:
            raise ValueError("Bungie API key is required")

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=timeout)

        self.user = UserService(self)
        self.groupv2 = GroupV2Service(self)
        self.destiny2 = Destiny2Service(self)

    async def close(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> Destiny2Client:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Request pipeline
    # ------------------------------------------------------------------

    def build_url(self, endpoint: str) -> str:
        """Join *endpoint* onto the base URL; Bungie requires the trailing slash."""
        segments = [s for s in endpoint.split("/") if s]
        return f"{self.base_url}/{'/'.join(segments)}/"

    async def execute(
        self,
        method: str,
        endpoint: str,
        dest: type[T] | Any,
        *options: RequestOption,
    ) -> T:
        """Send a request and decode its ``Response`` payload into *dest*.

        Raises an :class:`APIError` subclass when the provider reports a
        failure, :class:`DecodeError` when the body does not match, and lets
        ``httpx.TransportError`` through untouched.
        """
        request = PreparedRequest(method=method.upper(), url=self.build_url(endpoint))
        for option in options:
            option.apply(request)
        request.headers["X-Api-Key"] = self.api_key

        logger.debug(f"{request.method} {request.url} params={request.params}")
        response = await self._send(request)
        return self._parse(response, dest)

    async def _send(self, request: PreparedRequest) -> httpx.Response:
        send = self._http.request(
            request.method,
            request.url,
            params=request.params or None,
            headers=request.headers,
            json=request.json,
            content=request.content,
            timeout=request.timeout if request.timeout is not None else httpx.USE_CLIENT_DEFAULT,
        )

        if request.stop is None:
            return await send

        if request.stop.is_set():
            send.close()
            raise RequestCancelled(f"{request.method} {request.url} cancelled before sending")

        send_task = asyncio.ensure_future(send)
        stop_task = asyncio.ensure_future(request.stop.wait())
        try:
            await asyncio.wait({send_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stop_task.cancel()
            if not send_task.done():
                send_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await send_task

        if send_task.cancelled():
            raise RequestCancelled(f"{request.method} {request.url} cancelled")
        return send_task.result()

    def _parse(self, response: httpx.Response, dest: Any) -> Any:
        if _media_type(response) != "application/json":
            error_cls = _ERRORS_BY_STATUS.get(response.status_code, UnknownAPIError)
            logger.warning(
                f"Non-JSON response from {response.request.url}: "
                f"HTTP {response.status_code} -> {error_cls.reason}"
            )
            raise error_cls(status_code=response.status_code)

        try:
            envelope = response.json()
        except ValueError as e:
            raise DecodeError(f"invalid JSON envelope: {e}") from e
        if not isinstance(envelope, dict):
            raise DecodeError(f"expected a JSON object, got {type(envelope).__name__}")

        error_code = envelope.get("ErrorCode")
        if error_code != ERROR_CODE_SUCCESS:
            error_cls = _ERRORS_BY_CODE.get(error_code, UnknownAPIError)  # type: ignore[arg-type]
            logger.warning(
                f"Bungie API error from {response.request.url}: "
                f"{envelope.get('ErrorStatus')} ({error_code}) {envelope.get('Message', '')}"
            )
            raise error_cls(
                status_code=response.status_code,
                error_code=error_code,
                error_status=envelope.get("ErrorStatus") or "",
                message=envelope.get("Message") or "",
            )

        try:
            return _adapter(dest).validate_python(envelope.get("Response"))
        except ValidationError as e:
            raise DecodeError(f"unexpected Response payload: {e}") from e
