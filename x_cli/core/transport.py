"""
Signed HTTP transport.

Issues exactly one request per call, signs it with OAuth 1.0a and classifies
the response. Stateless between calls apart from the shared aiohttp session.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

import aiohttp

from ..models.api_models import Credentials
from ..utils.logger import get_logger
from .classifier import classify_response
from .errors import NetworkError, ProtocolError
from .signer import OAuth1Signer, SignableRequest

logger = get_logger(__name__)


class BodyKind(str, Enum):
    NONE = "none"
    FORM = "form"
    JSON = "json"
    MULTIPART = "multipart"


@dataclass(frozen=True)
class RequestBody:
    kind: BodyKind = BodyKind.NONE
    payload: Any = None

    @classmethod
    def form(cls, fields: Mapping[str, str]) -> "RequestBody":
        return cls(BodyKind.FORM, {str(k): str(v) for k, v in fields.items()})

    @classmethod
    def json(cls, obj: Any) -> "RequestBody":
        return cls(BodyKind.JSON, obj)

    @classmethod
    def multipart(cls, fields: Mapping[str, str]) -> "RequestBody":
        return cls(BodyKind.MULTIPART, {str(k): str(v) for k, v in fields.items()})


NO_BODY = RequestBody()


def build_multipart(fields: Mapping[str, str]) -> aiohttp.MultipartWriter:
    writer = aiohttp.MultipartWriter("form-data")
    for name, value in fields.items():
        part = writer.append(value)
        part.set_content_disposition("form-data", name=name)
    return writer


class Transport:
    """Sends signed requests through an aiohttp session."""

    def __init__(
        self,
        credentials: Credentials,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 30.0,
        signer: Optional[OAuth1Signer] = None,
    ):
        self._signer = signer or OAuth1Signer(credentials)
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def __aenter__(self) -> "Transport":
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    @staticmethod
    def signable(method: str, url: str, body: RequestBody) -> SignableRequest:
        """Only form-encoded bodies take part in the signature."""
        if body.kind is BodyKind.FORM:
            return SignableRequest(method, url, form_params=body.payload, include_form_params=True)
        return SignableRequest(method, url)

    def _request_kwargs(self, body: RequestBody) -> Dict[str, Any]:
        if body.kind is BodyKind.FORM:
            return {"data": dict(body.payload)}
        if body.kind is BodyKind.JSON:
            return {"json": body.payload}
        if body.kind is BodyKind.MULTIPART:
            return {"data": build_multipart(body.payload)}
        return {}

    async def send(self, request: SignableRequest, body: RequestBody = NO_BODY) -> Dict[str, Any]:
        """
        Sign and send one request.

        Args:
            request: What gets signed (method, URL, form params flag)
            body: What goes on the wire

        Returns:
            Parsed JSON object from a 2xx response

        Raises:
            XCliError subclass describing the failure
        """
        if self._session is None:
            raise RuntimeError("Transport used outside of 'async with'")

        method = request.method.upper()
        headers = self._signer.sign(request).as_headers()
        logger.debug(f"{method} {request.url} body={body.kind.value}")

        try:
            async with self._session.request(
                method, request.url, headers=headers, **self._request_kwargs(body)
            ) as response:
                raw = await response.read()
                logger.debug(f"{method} {request.url} -> {response.status}")
                try:
                    text = raw.decode(response.get_encoding())
                except (UnicodeDecodeError, LookupError) as e:
                    if 200 <= response.status < 300:
                        raise ProtocolError(f"Response body is not valid text: {e}") from e
                    text = raw.decode("utf-8", errors="replace")
                return classify_response(response.status, response.headers, text)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug(f"{method} {request.url} failed: {e!r}")
            raise NetworkError(str(e) or e.__class__.__name__) from e

    async def request(self, method: str, url: str, body: RequestBody = NO_BODY) -> Dict[str, Any]:
        return await self.send(self.signable(method, url, body), body)

    async def get(self, url: str) -> Dict[str, Any]:
        return await self.request("GET", url)

    async def delete(self, url: str) -> Dict[str, Any]:
        return await self.request("DELETE", url)

    async def post_json(self, url: str, payload: Any) -> Dict[str, Any]:
        return await self.request("POST", url, RequestBody.json(payload))

    async def post_form(self, url: str, fields: Mapping[str, str]) -> Dict[str, Any]:
        return await self.request("POST", url, RequestBody.form(fields))

    async def post_multipart(self, url: str, fields: Mapping[str, str]) -> Dict[str, Any]:
        return await self.request("POST", url, RequestBody.multipart(fields))
