"""
Paginated response model.
"""
from typing import Any, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """
    Backend page shape.

    ``content`` is required; every other field is tolerated when missing so
    that a partial page still loads, with the store falling back to the
    requested page/size.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    content: List[T]
    total_elements: int = 0
    total_pages: int = 0
    number: Optional[int] = None
    size: Optional[int] = None
    number_of_elements: Optional[int] = None
    first: bool = True
    last: bool = True
    empty: bool = False


def parse_page(item_type: Type[T], data: Any) -> Page[T]:
    """Validate a page body; raises pydantic.ValidationError on a wrong shape."""
    return Page[item_type].model_validate(data)  # type: ignore[valid-type]
