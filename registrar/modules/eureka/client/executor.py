"""Single-shot HTTP exchanges against the registry server."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx

from registrar.modules.eureka.domain import ApiVersion
from registrar.modules.eureka.util import build_url

# Out-of-band status reported when the registry could not be reached at all.
FAILED_STATUS_CODE = 999

RequestBuilder = Callable[[httpx.Request], httpx.Request]


@dataclass(frozen=True)
class ExchangeResult:
    content: bytes
    status_code: int

    @classmethod
    def failed(cls) -> "ExchangeResult":
        return cls(content=b"", status_code=FAILED_STATUS_CODE)

    @property
    def reached_server(self) -> bool:
        return self.status_code != FAILED_STATUS_CODE

    def ok_for(self, expected: int) -> bool:
        return self.status_code == expected

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


class RequestExecutor:
    """Send one request and fold transport errors into :class:`ExchangeResult`.

    Network failures never escape :meth:`execute`; callers only ever look at
    the status code.
    """

    def __init__(
        self,
        server_address: str,
        api_version: ApiVersion = ApiVersion.V1,
        log_enabled: bool = False,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ) -> None:
        self.server_address = server_address
        self.api_version = ApiVersion(api_version)
        self.log_enabled = log_enabled
        self.log = logging.getLogger(self.__class__.__name__)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def build_url(self, path: str) -> str:
        return build_url(self.server_address, path, self.api_version)

    async def execute(
        self,
        path: str,
        method: str,
        build_request: Optional[RequestBuilder] = None,
    ) -> ExchangeResult:
        url = self.build_url(path)
        request = self._client.build_request(method.upper(), url)
        if build_request is not None:
            request = build_request(request)
        try:
            response = await self._client.send(request)
        except httpx.HTTPError as exc:
            self.log.warning("%s %s failed: %s", request.method, url, exc)
            return ExchangeResult.failed()

        result = ExchangeResult(content=response.content, status_code=response.status_code)
        if self.log_enabled:
            self.log.info(
                "%s %s -> %s %s",
                request.method,
                url,
                response.status_code,
                response.reason_phrase,
            )
            if result.content:
                self.log.info("%s", result.text)
        return result

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def json_body(payload: Any) -> RequestBuilder:
    """Return a builder that attaches ``payload`` as a JSON body."""

    def build(request: httpx.Request) -> httpx.Request:
        headers = httpx.Headers(request.headers)
        headers.pop("Content-Length", None)
        headers["Content-Type"] = "application/json"
        return httpx.Request(
            request.method,
            request.url,
            headers=headers,
            json=payload,
            extensions=request.extensions,
        )

    return build
