"""
Request builder utilities for api_client.
"""
import logging
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import urlencode, urljoin, urlparse

from pydantic import BaseModel
from pydantic_core import to_jsonable_python

from .config import ResolvedConfig

logger = logging.getLogger("api_client.request_builder")

QueryValue = Union[str, int, float, bool, Enum, None]
Query = Union[Mapping[str, QueryValue], Sequence[Tuple[str, QueryValue]]]


def _format_query_value(value: QueryValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def build_query(query: Optional[Query]) -> List[Tuple[str, str]]:
    """Flatten query params to pairs, dropping None and empty strings."""
    if not query:
        return []
    items = query.items() if isinstance(query, Mapping) else query
    return [
        (name, _format_query_value(value))
        for name, value in items
        if value is not None and value != ""
    ]


def build_url(
    base_url: str,
    path: str,
    query: Optional[Query] = None,
) -> str:
    """Build full URL from base and path."""
    # Absolute paths are appended to the base path, not the host root
    if path.startswith("/"):
        parsed = urlparse(base_url)
        base_path = parsed.path.rstrip("/")
        url = f"{parsed.scheme}://{parsed.netloc}{base_path}{path}"
    elif path:
        if not base_url.endswith("/"):
            base_url = base_url + "/"
        url = urljoin(base_url, path)
    else:
        url = base_url

    pairs = build_query(query)
    if pairs:
        separator = "&" if "?" in url else "?"
        url = f"{url}{separator}{urlencode(pairs)}"

    return url


def build_headers(
    config: ResolvedConfig,
    headers: Optional[Dict[str, str]] = None,
    token: Optional[str] = None,
    has_body: bool = False,
) -> Dict[str, str]:
    """Build request headers."""
    result = dict(config.headers)

    if headers:
        result.update(headers)

    lowered = {k.lower() for k in result}
    if has_body and "content-type" not in lowered:
        result["content-type"] = config.content_type

    if "accept" not in lowered:
        result["accept"] = "application/json"

    if token and "authorization" not in lowered:
        result["authorization"] = f"Bearer {token}"
    logger.debug(f"build_headers: has_token={bool(token)}, has_body={has_body}")

    return result


def to_json_data(data: Any) -> Any:
    """
    Convert a payload to JSON-compatible data.

    Pydantic models become camelCase dicts with unset optionals dropped.
    Plain data has datetimes, enums and nested models converted.
    """
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True, exclude_none=True)
    return to_jsonable_python(data, by_alias=True)


def build_body(
    json_data: Optional[Any] = None,
    serializer: Optional[Any] = None,
) -> Optional[str]:
    """Build request body."""
    if json_data is None or serializer is None:
        return None
    return serializer.serialize(to_json_data(json_data))
