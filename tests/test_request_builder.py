"""
Tests for request building helpers.
"""
import json
from datetime import datetime
from enum import Enum
from typing import Optional

import pytest
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from api_client import (
    ClientConfig,
    build_body,
    build_headers,
    build_query,
    build_url,
    normalize_timeout,
    resolve_config,
    TimeoutConfig,
    to_json_data,
)
from api_client.config import default_serializer


class Status(str, Enum):
    DRAFT = "DRAFT"


class Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    city_id: int
    short_name: Optional[str] = None


class TestBuildUrl:
    """Tests for build_url."""

    def test_absolute_path_keeps_base_path(self) -> None:
        assert build_url("http://api.local/api/v1", "/cities") == "http://api.local/api/v1/cities"

    def test_trailing_slash_on_base(self) -> None:
        assert build_url("http://api.local/api/v1/", "/cities") == "http://api.local/api/v1/cities"

    def test_relative_path(self) -> None:
        assert build_url("http://api.local/api/v1", "cities/public") == "http://api.local/api/v1/cities/public"

    def test_empty_path(self) -> None:
        assert build_url("http://api.local/api/v1", "") == "http://api.local/api/v1"

    def test_query_mapping(self) -> None:
        url = build_url("http://api.local", "/cities", {"page": 0, "size": 10, "name": None})

        assert url == "http://api.local/cities?page=0&size=10"

    def test_query_pairs_allow_repeated_names(self) -> None:
        url = build_url("http://api.local", "/news", [("pageable.sort", "createdAt,desc"), ("pageable.sort", "title,asc")])

        assert url == "http://api.local/news?pageable.sort=createdAt%2Cdesc&pageable.sort=title%2Casc"


class TestBuildQuery:
    """Tests for build_query."""

    def test_drops_none_and_empty_string(self) -> None:
        assert build_query({"a": None, "b": "", "c": 0}) == [("c", "0")]

    def test_formats_bool_and_enum(self) -> None:
        assert build_query({"active": False, "status": Status.DRAFT}) == [
            ("active", "false"),
            ("status", "DRAFT"),
        ]

    def test_empty(self) -> None:
        assert build_query(None) == []
        assert build_query({}) == []


class TestBuildHeaders:
    """Tests for build_headers."""

    @pytest.fixture
    def config(self):
        return resolve_config(ClientConfig(base_url="http://api.local", headers={"x-client": "admin"}))

    def test_defaults(self, config) -> None:
        headers = build_headers(config)

        assert headers == {"x-client": "admin", "accept": "application/json"}

    def test_bearer_token(self, config) -> None:
        headers = build_headers(config, token="abc")

        assert headers["authorization"] == "Bearer abc"

    def test_explicit_authorization_wins(self, config) -> None:
        headers = build_headers(config, {"Authorization": "Basic xyz"}, token="abc")

        assert headers["Authorization"] == "Basic xyz"
        assert "authorization" not in headers

    def test_content_type_only_with_body(self, config) -> None:
        assert "content-type" not in build_headers(config)
        assert build_headers(config, has_body=True)["content-type"] == "application/json"


class TestBody:
    """Tests for body helpers."""

    def test_model_is_dumped_camel_case_without_none(self) -> None:
        assert to_json_data(Payload(city_id=1)) == {"cityId": 1}

    def test_plain_data_passes_through(self) -> None:
        assert to_json_data({"a": 1}) == {"a": 1}

    def test_plain_data_with_datetime_and_enum(self) -> None:
        body = build_body(
            {"publishedAt": datetime(2024, 5, 1, 10, 0), "status": Status.DRAFT},
            default_serializer,
        )

        assert json.loads(body) == {"publishedAt": "2024-05-01T10:00:00", "status": "DRAFT"}

    def test_build_body(self) -> None:
        assert build_body(Payload(city_id=1, short_name="A"), default_serializer) == '{"cityId": 1, "shortName": "A"}'
        assert build_body(None, default_serializer) is None


class TestConfig:
    """Tests for config helpers."""

    def test_normalize_timeout(self) -> None:
        assert normalize_timeout(5) == TimeoutConfig(connect=5, read=5, write=5)
        assert normalize_timeout(None) == TimeoutConfig()

    def test_invalid_base_url(self) -> None:
        with pytest.raises(ValueError):
            resolve_config(ClientConfig(base_url="not a url"))

    def test_missing_base_url(self) -> None:
        with pytest.raises(ValueError):
            resolve_config(ClientConfig(base_url=""))

    def test_repr_masks_token(self) -> None:
        assert "secret" not in repr(ClientConfig(base_url="http://api.local", auth_token="secret"))
