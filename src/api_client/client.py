"""
Async JSON API client using httpx.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from .config import ClientConfig, resolve_config
from .request_builder import Query, build_body, build_headers, build_url, to_json_data
from . import trace

logger = logging.getLogger("api_client.client")


class AsyncApiClient:
    """
    Asynchronous JSON client for the admin backend.

    Every method returns the decoded JSON body (None for an empty body) and
    raises ``httpx.HTTPStatusError`` for non-2xx responses. Transport
    failures surface as ``httpx.TransportError`` subclasses.

    Example:
        async with AsyncApiClient(ClientConfig(base_url="http://localhost:8000/api/v1")) as client:
            page = await client.get("/cities", query={"page": 0, "size": 10})
    """

    def __init__(
        self,
        config: ClientConfig,
        httpx_client: Optional[httpx.AsyncClient] = None,
    ):
        self._config = resolve_config(config)
        self._token = config.auth_token
        self._get_token = config.get_token
        self._on_unauthorized = config.on_unauthorized
        if httpx_client is not None:
            self._client = httpx_client
        else:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(
                    connect=self._config.timeout.connect,
                    read=self._config.timeout.read,
                    write=self._config.timeout.write,
                    pool=self._config.timeout.connect,
                ),
            )
        self._closed = False

    @property
    def base_url(self) -> str:
        return self._config.base_url

    def set_token(self, token: Optional[str]) -> None:
        """Replace the static bearer token; None removes it."""
        self._token = token

    def _resolve_token(self) -> Optional[str]:
        if self._get_token is not None:
            token = self._get_token()
            if token:
                return token
        return self._token

    async def request(
        self,
        method: str = "GET",
        path: str = "/",
        headers: Optional[Dict[str, str]] = None,
        json: Optional[Any] = None,
        query: Optional[Query] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """Make a request and return the decoded body."""
        if self._closed:
            raise RuntimeError("Client has been closed")

        url = build_url(self._config.base_url, path, query)
        has_body = json is not None
        request_headers = build_headers(self._config, headers, self._resolve_token(), has_body)
        request_body = build_body(json, self._config.serializer)

        logger.debug(f"AsyncApiClient.request: method={method}, url={url}")

        if self._config.trace:
            trace.print_request(method, url, request_headers, to_json_data(json))

        kwargs: Dict[str, Any] = {}
        if timeout is not None:
            kwargs["timeout"] = timeout

        response = await self._client.request(
            method=method,
            url=url,
            headers=request_headers,
            content=request_body,
            **kwargs,
        )

        data = self._decode(response)

        if self._config.trace:
            trace.print_response(url, response.status_code, response.reason_phrase or "", data)

        if response.status_code == 401:
            self._handle_unauthorized()

        logger.debug(f"AsyncApiClient.request: {method} {url} -> {response.status_code}")
        response.raise_for_status()
        return data

    def _decode(self, response: httpx.Response) -> Any:
        text = response.text
        if not text:
            return None
        try:
            return self._config.serializer.deserialize(text)
        except ValueError:
            return text

    def _handle_unauthorized(self) -> None:
        logger.warning("AsyncApiClient: 401 received, dropping bearer token")
        self._token = None
        if self._on_unauthorized is not None:
            self._on_unauthorized()

    async def get(self, path: str, **kwargs: Any) -> Any:
        """GET request."""
        return await self.request(method="GET", path=path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Any:
        """POST request."""
        return await self.request(method="POST", path=path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Any:
        """PUT request."""
        return await self.request(method="PUT", path=path, **kwargs)

    async def patch(self, path: str, **kwargs: Any) -> Any:
        """PATCH request."""
        return await self.request(method="PATCH", path=path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        """DELETE request."""
        return await self.request(method="DELETE", path=path, **kwargs)

    async def close(self) -> None:
        """Close the client."""
        self._closed = True
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def create_api_client(
    base_url: str,
    auth_token: Optional[str] = None,
    timeout: Optional[float] = None,
    httpx_client: Optional[httpx.AsyncClient] = None,
    **options: Any,
) -> AsyncApiClient:
    """Create an AsyncApiClient from keyword options."""
    config = ClientConfig(base_url=base_url, auth_token=auth_token, timeout=timeout, **options)
    return AsyncApiClient(config, httpx_client=httpx_client)
