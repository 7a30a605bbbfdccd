"""
Configuration for api_client.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Union
from urllib.parse import urlparse

logger = logging.getLogger("api_client.config")


@dataclass
class TimeoutConfig:
    """Timeout configuration in seconds."""

    connect: float = 10.0
    read: float = 10.0
    write: float = 10.0


@dataclass
class ClientConfig:
    """
    Client configuration.

    Attributes:
        base_url: Backend root, e.g. ``http://localhost:8000/api/v1``.
        timeout: Seconds for every phase, or a TimeoutConfig.
        headers: Headers sent with every request.
        auth_token: Static bearer token.
        get_token: Called per request; takes precedence over ``auth_token``.
        on_unauthorized: Called after any 401 response, once the static
            token has been dropped.
        trace: Print requests and responses to the console.
    """

    base_url: str
    timeout: Union[TimeoutConfig, float, None] = None
    headers: Dict[str, str] = field(default_factory=dict)
    auth_token: Optional[str] = None
    get_token: Optional[Callable[[], Optional[str]]] = None
    on_unauthorized: Optional[Callable[[], None]] = None
    trace: bool = False
    content_type: str = "application/json"

    def __repr__(self) -> str:
        token = "<set>" if self.auth_token else None
        return (
            f"ClientConfig(base_url={self.base_url!r}, timeout={self.timeout!r}, "
            f"auth_token={token!r}, has_get_token={self.get_token is not None}, "
            f"trace={self.trace!r})"
        )


DEFAULT_TIMEOUT = TimeoutConfig()
DEFAULT_CONTENT_TYPE = "application/json"


class DefaultSerializer:
    """Default JSON serializer."""

    def serialize(self, data: Any) -> str:
        return json.dumps(data)

    def deserialize(self, text: str) -> Any:
        return json.loads(text)


default_serializer = DefaultSerializer()


def normalize_timeout(timeout: Union[TimeoutConfig, float, None]) -> TimeoutConfig:
    """Normalize timeout config."""
    if timeout is None:
        return DEFAULT_TIMEOUT
    if isinstance(timeout, (int, float)):
        return TimeoutConfig(connect=timeout, read=timeout, write=timeout)
    return timeout


def validate_config(config: ClientConfig) -> None:
    """Validate client configuration."""
    if not config.base_url:
        raise ValueError("base_url is required")

    parsed = urlparse(config.base_url)
    if not parsed.scheme or not parsed.netloc:
        raise ValueError(f"Invalid base_url: {config.base_url}")

    if config.auth_token and config.auth_token.startswith(("http://", "https://")):
        logger.error(
            "ClientConfig: auth_token appears to be a URL (starts with http). "
            "This is likely a misconfiguration."
        )


@dataclass
class ResolvedConfig:
    """Resolved client configuration with defaults applied."""

    base_url: str
    timeout: TimeoutConfig
    headers: Dict[str, str]
    content_type: str
    serializer: DefaultSerializer
    trace: bool


def resolve_config(config: ClientConfig) -> ResolvedConfig:
    """Resolve client configuration with defaults."""
    validate_config(config)

    return ResolvedConfig(
        base_url=config.base_url,
        timeout=normalize_timeout(config.timeout),
        headers=dict(config.headers),
        content_type=config.content_type or DEFAULT_CONTENT_TYPE,
        serializer=default_serializer,
        trace=config.trace,
    )
