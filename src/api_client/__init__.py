"""
Async JSON client for the sports admin backend.
"""
from .config import (
    ClientConfig,
    TimeoutConfig,
    ResolvedConfig,
    DEFAULT_TIMEOUT,
    normalize_timeout,
    resolve_config,
    validate_config,
)
from .request_builder import (
    build_body,
    build_headers,
    build_query,
    build_url,
    to_json_data,
)
from .client import (
    AsyncApiClient,
    create_api_client,
)
from .trace import mask_auth_header


__all__ = [
    # Config
    "ClientConfig",
    "TimeoutConfig",
    "ResolvedConfig",
    "DEFAULT_TIMEOUT",
    "normalize_timeout",
    "resolve_config",
    "validate_config",
    # Request building
    "build_body",
    "build_headers",
    "build_query",
    "build_url",
    "to_json_data",
    # Client
    "AsyncApiClient",
    "create_api_client",
    # Tracing
    "mask_auth_header",
]

__version__ = "1.0.0"
