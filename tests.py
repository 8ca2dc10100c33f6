"""Tests for http_negotiate.

The integration tests at the bottom drive the negotiators from a small
Starlette app, the way an HTTP layer reads the Accept headers.
"""

import functools
import logging

import pytest

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from http_negotiate import (
    MatchOptions,
    NegotiateError,
    NegotiationKind,
    NoSupportedValues,
    RankedEntry,
    match,
    negotiate,
    negotiate_content,
    negotiate_encoding,
    negotiate_language,
    parse_header,
    select_best,
)
from http_negotiate.headers import parse_quality
from http_negotiate.matching import match_locales, match_parameters, match_sub_types

CHROME_ACCEPT = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8,"
    "appliation/signed-exchange;v=b3;q=0.9"
)


@pytest.fixture
def test_client_factory(anyio_backend_name, anyio_backend_options):
    return functools.partial(
        TestClient,
        backend=anyio_backend_name,
        backend_options=anyio_backend_options,
    )


# --- header parsing ---


def test_parse_header_defaults():
    assert parse_header("gzip") == [RankedEntry("gzip", 1.0, {})]


def test_parse_header_empty_segment():
    assert parse_header("") == [RankedEntry("", 1.0, {})]


def test_parse_header_strips_whitespace():
    (entry,) = parse_header("  gzip ; q=0.5 ")
    assert entry.value == "gzip"
    assert entry.quality == 0.5
    assert entry.params == {}


def test_parse_header_params():
    (entry,) = parse_header("text/html; charset=\"utf-8\"; level='1'; q=0.5")
    assert entry.value == "text/html"
    assert entry.quality == 0.5
    assert entry.params == {"charset": "utf-8", "level": "1"}


def test_parse_header_skips_malformed_params():
    (entry,) = parse_header("text/html;level;charset=utf-8")
    assert entry.params == {"charset": "utf-8"}


def test_parse_header_orders_by_quality():
    values = [e.value for e in parse_header("a;q=0.1, b, c;q=0.5")]
    assert values == ["b", "c", "a"]


def test_parse_header_orders_by_specificity():
    entries = parse_header("*/*, text/*, text/html, text/html;level=1")
    assert [e.value for e in entries] == ["text/html", "text/html", "text/*", "*/*"]
    assert entries[0].params == {"level": "1"}
    assert entries[1].params == {}


def test_parse_header_keeps_order_of_equal_entries():
    values = [e.value for e in parse_header("en, fr, de")]
    assert values == ["en", "fr", "de"]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("0.8", 0.8),
        ("1", 1.0),
        ("0", 0.0),
        ("foo", 0.0),  # malformed means "not acceptable"
        ("2", 1.0),
        ("-1", 0.0),
        ("nan", 0.0),
        ("inf", 0.0),
        ("infinity", 0.0),
        ("1_0", 0.0),
        ("1e0", 0.0),
        (" 0.5 ", 0.5),
        ("1.", 1.0),
        (".5", 0.5),
    ],
)
def test_parse_quality(raw, expected):
    assert parse_quality(raw) == expected


def test_parse_header_quoted_quality():
    (entry,) = parse_header('gzip;q="0.3"')
    assert entry.quality == 0.3


def test_parse_header_rejects_non_decimal_quality():
    entries = parse_header("gzip;q=inf, br;q=1_0, zstd;q=infinity")
    assert [(e.value, e.quality) for e in entries] == [
        ("gzip", 0.0),
        ("br", 0.0),
        ("zstd", 0.0),
    ]


def test_ranked_entry_is_unhashable():
    # params is a dict, so entries compare by value but cannot be hashed
    assert RankedEntry.__hash__ is None
    assert RankedEntry("gzip") == RankedEntry("gzip", 1.0, {})



# --- matching policies ---


def test_match_parameters():
    assert match_parameters({}, {})
    assert match_parameters({"v": "b3"}, {"v": "b3"})
    assert not match_parameters({"v": "b3"}, {"v": "b2"})
    assert not match_parameters({"v": "b3"}, {})
    assert not match_parameters({"a": "1"}, {"b": "1"})


@pytest.mark.parametrize(
    "a, b, expected",
    [
        ("text/html", "text/html", True),
        ("text/*", "text/html", True),
        ("text/html", "text/*", True),
        ("text/html", "text/plain", False),
        ("text/html", "image/html", False),
        ("Text/html", "text/html", False),
        ("text", "text/*", True),
    ],
)
def test_match_sub_types(a, b, expected):
    assert match_sub_types(a, b) is expected


@pytest.mark.parametrize(
    "a, b, expected",
    [
        ("en-US", "en-GB", True),
        ("en", "en-GB", True),
        ("en-GB", "en", True),
        ("fr", "en", False),
        ("fr-CA", "en-CA", False),
    ],
)
def test_match_locales(a, b, expected):
    assert match_locales(a, b) is expected


def test_match_exact_value_requires_same_params():
    a = RankedEntry("text/html", params={"level": "1"})
    assert match(a, RankedEntry("text/html", params={"level": "1"}), MatchOptions())
    # an exact value match never falls through to the looser policies
    assert not match(
        a, RankedEntry("text/html"), MatchOptions(enforce_types=True)
    )


def test_match_policy_selection():
    a = RankedEntry("en-US")
    b = RankedEntry("en-GB")
    assert not match(a, b, MatchOptions())
    assert match(a, b, MatchOptions(match_locales=True))
    assert not match(RankedEntry("text/*"), RankedEntry("text/html"), MatchOptions())
    assert match(
        RankedEntry("text/*"), RankedEntry("text/html"), MatchOptions(enforce_types=True)
    )


# --- best match selection ---


def test_select_best_requires_supported_values():
    with pytest.raises(NoSupportedValues):
        select_best("text/html", [])


def test_select_best_empty_header_returns_default():
    assert select_best("", ["a", "b"]) == "a"
    assert select_best(None, ["a", "b"]) == "a"
    assert select_best("", ["a"], MatchOptions(strict=True)) is None


def test_select_best_strict_without_match():
    options = MatchOptions(enforce_types=True, strict=True)
    assert select_best("text/html", ["text/plain"], options) is None


def test_select_best_accepts_iterables():
    assert select_best("b", (v for v in ["a", "b"])) == "b"


def test_no_supported_values_is_a_value_error():
    assert issubclass(NoSupportedValues, NegotiateError)
    assert issubclass(NoSupportedValues, ValueError)
    assert str(NoSupportedValues()) == "No supported values supplied"


def test_fallback_is_logged(caplog):
    caplog.set_level(logging.DEBUG, logger="http_negotiate")
    assert negotiate_language("fr", ["en"]) == "en"
    assert "falling back" in caplog.text


# --- content ---


@pytest.mark.parametrize(
    "accepted, supported, expected",
    [
        (CHROME_ACCEPT, ["text/html"], "text/html"),
        (CHROME_ACCEPT, ["application/xml", "text/html"], "text/html"),
        (
            CHROME_ACCEPT,
            ["text/plain", "appliation/signed-exchange;v=b3"],
            "appliation/signed-exchange",
        ),
        (
            CHROME_ACCEPT,
            ["text/plain", "appliation/signed-exchange;v=b2"],
            "text/plain",
        ),
        ("text/html", ["text/plain"], "text/plain"),
        ("image/*", ["text/html", "image/png"], "image/png"),
        ("text/*, text/html", ["text/plain", "text/html"], "text/html"),
        ("*/*", ["application/json;charset=utf-8"], "application/json"),
        (
            "text/html;q=0, application/json;q=0.5",
            ["text/html", "application/json"],
            "application/json",
        ),
    ],
)
def test_content(accepted, supported, expected):
    assert negotiate_content(accepted, supported) == expected


def test_content_strict():
    assert negotiate_content("text/html", ["text/plain"], strict=True) == ""
    assert negotiate_content("", ["text/plain"], strict=True) == ""
    assert negotiate_content("text/*", ["text/plain"], strict=True) == "text/plain"


def test_content_empty():
    with pytest.raises(NoSupportedValues):
        negotiate_content(CHROME_ACCEPT, [])


def test_content_is_repeatable():
    supported = ["text/plain", "appliation/signed-exchange;v=b3"]
    first = negotiate_content(CHROME_ACCEPT, supported)
    assert negotiate_content(CHROME_ACCEPT, supported) == first
    assert supported == ["text/plain", "appliation/signed-exchange;v=b3"]


# --- encoding ---


@pytest.mark.parametrize(
    "accepted, supported, expected",
    [
        ("deflate, gzip;q=0.9, *;q=0.5", ["deflate"], "deflate"),
        ("deflate, gzip;q=0.9, *;q=0.5", ["gzip", "deflate"], "deflate"),
        ("deflate;q=0.9, gzip, *;q=0.5", ["gzip", "deflate"], "gzip"),
        ("deflate, gzip;q=0.9, *;q=0.5", ["any"], "any"),
        ("deflate, gzip;q=0.9, *;q=0.5", [], "identity"),
        ("br", [], "identity"),
        ("br, identity;q=0.5", ["gzip"], "identity"),
        ("gzip;q=0, identity", ["gzip"], "identity"),
        ("br", ["gzip"], "gzip"),
        ("", [], "identity"),
        ("gzip;q=0.5, br;q=inf", ["gzip", "br"], "gzip"),
    ],
)
def test_encoding(accepted, supported, expected):
    assert negotiate_encoding(accepted, supported) == expected


def test_encoding_does_not_mutate_supported():
    supported = ["gzip"]
    negotiate_encoding("identity", supported)
    assert supported == ["gzip"]


# --- language ---


@pytest.mark.parametrize(
    "accepted, supported, expected",
    [
        ("en-GB,en-US;q=0.9,en;q=0.8", ["en-GB"], "en-GB"),
        ("en-GB,en-US;q=0.9,en;q=0.8", ["en-GB", "en-US", "en"], "en-GB"),
        ("ru-RU;q=0.9,en-US,en;q=0.8", ["ru-RU", "en-US", "en"], "en-US"),
        ("ru-RU;q=0.9,en-US,en;q=0.8", ["ru-RU", "en-GB", "en"], "en-GB"),
        ("de", ["en", "en", "de"], "de"),
        ("fr", ["en", "en"], "en"),
        ("*", ["fr", "en"], "fr"),
        ("fr;q=0, *;q=0.1", ["en", "fr"], "en"),
    ],
)
def test_language(accepted, supported, expected):
    assert negotiate_language(accepted, supported) == expected


def test_language_empty():
    with pytest.raises(NoSupportedValues):
        negotiate_language("en-GB,en-US;q=0.9,en;q=0.8", [])


# --- dispatch by kind ---


def test_negotiate_by_kind():
    assert negotiate(NegotiationKind.CONTENT, "text/html", ["text/plain"]) == "text/plain"
    assert negotiate("content", CHROME_ACCEPT, ["text/html"]) == "text/html"
    assert negotiate(NegotiationKind.ENCODING, "br", []) == "identity"
    assert negotiate("language", "en-US", ["fr", "en-GB"]) == "en-GB"
    assert negotiate(NegotiationKind.CONTENT, "text/html", ["text/plain"], strict=True) == ""


def test_negotiate_rejects_unknown_kind():
    with pytest.raises(ValueError):
        negotiate("charset", "utf-8", ["utf-8"])


def test_negotiate_rejects_strict_for_other_kinds():
    with pytest.raises(ValueError):
        negotiate("language", "en", ["en"], strict=True)
    with pytest.raises(ValueError):
        negotiate(NegotiationKind.ENCODING, "gzip", ["gzip"], strict=True)
    with pytest.raises(ValueError):
        NegotiationKind.ENCODING.options(strict=True)


def test_kind_options():
    assert NegotiationKind.CONTENT.options() == MatchOptions(enforce_types=True)
    assert NegotiationKind.CONTENT.options(strict=True) == MatchOptions(
        enforce_types=True, strict=True
    )
    assert NegotiationKind.ENCODING.options() == MatchOptions()
    assert NegotiationKind.LANGUAGE.options() == MatchOptions(match_locales=True)


# --- served through starlette ---


def homepage(request: Request):
    media_type = negotiate_content(
        request.headers.get("accept", ""),
        ["application/json", "text/html"],
        strict=True,
    )
    if not media_type:
        return PlainTextResponse("Not Acceptable", status_code=406)

    return JSONResponse(
        {
            "content": media_type,
            "encoding": negotiate_encoding(
                request.headers.get("accept-encoding", ""), ["zstd", "gzip"]
            ),
            "language": negotiate_language(
                request.headers.get("accept-language", ""), ["en-GB", "fr"]
            ),
        }
    )


@pytest.fixture
def client(test_client_factory):
    app = Starlette(routes=[Route("/", homepage)])
    return test_client_factory(app)


def test_request_negotiation(client):
    response = client.get(
        "/",
        headers={
            "accept": CHROME_ACCEPT,
            "accept-encoding": "gzip;q=0.8, zstd",
            "accept-language": "fr-CA, en;q=0.5",
        },
    )
    assert response.status_code == 200
    assert response.json() == {
        "content": "text/html",
        "encoding": "zstd",
        "language": "fr",
    }


def test_request_wildcard_accept(client):
    response = client.get(
        "/",
        headers={
            "accept": "*/*",
            "accept-encoding": "identity",
            "accept-language": "de",
        },
    )
    assert response.status_code == 200
    assert response.json() == {
        "content": "application/json",
        "encoding": "identity",
        "language": "en-GB",
    }


def test_request_not_acceptable(client):
    response = client.get("/", headers={"accept": "image/png"})
    assert response.status_code == 406
    assert response.text == "Not Acceptable"
