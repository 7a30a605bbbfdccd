"""
Generic paginated resource stores backed by a shared RequestExecutor.
"""
from .errors import (
    AppError,
    ErrorCode,
    RETRYABLE_CODES,
    UNEXPECTED_RESPONSE_MESSAGE,
    UnexpectedResponseError,
    is_retryable_error,
    normalize_error,
)
from .filters import (
    FilterParams,
    filter_field,
    format_query_value,
    is_blank,
)
from .page import Page, parse_page
from .types import (
    ResourceApi,
    ResourceState,
    StateListener,
    StoreStatus,
)
from .store import (
    ResourceStore,
    entity_id,
    payload_fingerprint,
)


__all__ = [
    # Errors
    "AppError",
    "ErrorCode",
    "RETRYABLE_CODES",
    "UNEXPECTED_RESPONSE_MESSAGE",
    "UnexpectedResponseError",
    "is_retryable_error",
    "normalize_error",
    # Filters
    "FilterParams",
    "filter_field",
    "format_query_value",
    "is_blank",
    # Pages
    "Page",
    "parse_page",
    # Types
    "ResourceApi",
    "ResourceState",
    "StateListener",
    "StoreStatus",
    # Store
    "ResourceStore",
    "entity_id",
    "payload_fingerprint",
]

__version__ = "1.0.0"
