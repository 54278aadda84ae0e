from __future__ import annotations

from datetime import datetime

import httpx
import pytest

from fetchlayer import Options, merge_options, serialize
from fetchlayer.request_options import build_call_options


def test_serialize_expands_lists_and_drops_none() -> None:
    params = serialize({"number": 0, "string": "text", "array": [1, "two", 3], "null": None})

    assert str(params) == "number=0&string=text&array=1&array=two&array=3"
    assert params.get_list("array") == ["1", "two", "3"]
    assert "null" not in params


def test_serialize_formats_booleans_and_datetimes() -> None:
    params = serialize({"flag": True, "off": False, "since": datetime(2024, 1, 2, 3, 4, 5)})

    assert params["flag"] == "true"
    assert params["off"] == "false"
    assert params["since"] == "2024-01-02T03:04:05"


def test_merge_concatenates_resource() -> None:
    merged = merge_options(Options(resource="http://localhost"), Options(resource="/posts"))
    assert merged.resource == "http://localhost/posts"

    nested = merge_options(merged, Options(resource="/1"))
    assert nested.resource == "http://localhost/posts/1"


def test_merge_headers_child_wins_without_mutating_inputs() -> None:
    parent_headers = {"X-From": "website", "Authorization": "Bearer parent"}
    parent = Options(headers=parent_headers)
    child = Options(headers={"authorization": "Bearer child"})

    merged = merge_options(parent, child)

    assert merged.headers["x-from"] == "website"
    assert merged.headers["authorization"] == "Bearer child"
    assert merged.headers.get_list("authorization") == ["Bearer child"]
    assert parent_headers == {"X-From": "website", "Authorization": "Bearer parent"}


def test_merge_never_aliases_header_containers() -> None:
    parent = merge_options(None, Options(headers={"a": "1"}))
    merged = merge_options(parent, None)

    assert merged.headers is not parent.headers
    merged.headers["b"] = "2"
    assert "b" not in parent.headers


def test_merge_params_union_with_child_precedence() -> None:
    merged = merge_options(
        Options(params={"accessToken": 1, "page": 1}),
        Options(params={"userId": 1, "page": [2, 3]}),
    )

    assert merged.params["accessToken"] == "1"
    assert merged.params["userId"] == "1"
    assert merged.params.get_list("page") == ["2", "3"]


def test_merge_keeps_prebuilt_params_verbatim() -> None:
    merged = merge_options(
        Options(params="a=1&a=2"),
        Options(params=httpx.QueryParams({"b": "x y"})),
    )

    assert merged.params.get_list("a") == ["1", "2"]
    assert merged.params["b"] == "x y"


def test_merge_uses_child_serializer_for_both_sides() -> None:
    calls: list[dict] = []

    def bracket(params):
        calls.append(dict(params))
        return "&".join(
            f"{key}[]={item}" if isinstance(value, list) else f"{key}={value}"
            for key, value in params.items()
            for item in (value if isinstance(value, list) else [value])
        )

    merged = merge_options(Options(params={"accessToken": "1"}), Options(params={"users": [1, 2]}, serialize=bracket))

    assert calls == [{"accessToken": "1"}, {"users": [1, 2]}]
    assert str(merged.params) == "accessToken=1&users%5B%5D=1&users%5B%5D=2"
    assert merged.serialize is bracket


def test_merge_scalars_child_overrides_parent() -> None:
    def parent_hook(response):
        return response

    merged = merge_options(
        Options(base="http://a.example", timeout=5, on_success=parent_hook, method="GET"),
        Options(timeout=1, method="POST"),
    )

    assert merged.base == "http://a.example"
    assert merged.timeout == 1
    assert merged.method == "POST"
    assert merged.on_success is parent_hook


def test_merge_with_absent_sides() -> None:
    merged = merge_options(None, None)

    assert merged.resource == ""
    assert len(merged.headers) == 0
    assert str(merged.params) == ""


def test_build_call_options_accepts_options_as_first_argument() -> None:
    call = build_call_options("POST", Options(json={"title": "x"}))

    assert call.method == "POST"
    assert call.json == {"title": "x"}
    assert call.resource is None


def test_build_call_options_applies_keyword_overrides() -> None:
    call = build_call_options("GET", "/comments", None, {"params": {"userId": 1}})

    assert call.resource == "/comments"
    assert call.params == {"userId": 1}


def test_build_call_options_rejects_unknown_keywords() -> None:
    with pytest.raises(TypeError):
        build_call_options("GET", "/comments", None, {"nope": 1})
