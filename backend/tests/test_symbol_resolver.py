import requests

from domain.outcomes import ResourceLoadError, StyleLoadError, SymbolNotFoundError
from services.symbol_resolver import SymbolResolver

from fakes import DummyResponse, DummySession

TEMPLATE = "http://styles.test/{style}/root.json"

STYLE_ROOT = {
    "items": [
        {"name": "Bus", "key": "bus", "cimRef": "./cim/bus.json", "dimensionality": "2d"},
        {
            "name": "Park",
            "key": "park",
            "cimRef": "./cim/park.json",
            "thumbnail": {"href": "./thumbs/park.png"},
            "dimensionality": "2d",
        },
    ]
}


def test_resolve_finds_symbol_by_key_and_resolves_urls():
    session = DummySession(DummyResponse(STYLE_ROOT))
    outcome = SymbolResolver(TEMPLATE, session=session).resolve("Esri2DPointSymbolsStyle", "park")

    assert outcome.ok
    handle = outcome.value
    assert handle.style_name == "Esri2DPointSymbolsStyle"
    assert handle.name == "Park"
    assert handle.cim_ref == "http://styles.test/Esri2DPointSymbolsStyle/cim/park.json"
    assert handle.thumbnail_url == "http://styles.test/Esri2DPointSymbolsStyle/thumbs/park.png"
    assert session.calls[0]["url"] == "http://styles.test/Esri2DPointSymbolsStyle/root.json"


def test_missing_symbol_in_loaded_library_is_not_found():
    outcome = SymbolResolver(TEMPLATE, session=DummySession(DummyResponse(STYLE_ROOT))).resolve("S", "volcano")

    assert not outcome.ok
    assert isinstance(outcome.error, SymbolNotFoundError)
    assert outcome.error.message.startswith("symbol not found")


def test_library_load_failure_is_distinct_from_not_found():
    session = DummySession(DummyResponse({"error": {"code": 404, "details": "no such style"}}, status_code=404))
    outcome = SymbolResolver(TEMPLATE, session=session).resolve("Missing", "park")

    assert isinstance(outcome.error, StyleLoadError)
    assert not isinstance(outcome.error, SymbolNotFoundError)
    assert isinstance(outcome.error, ResourceLoadError)
    assert outcome.error.message.startswith("style library failed to load")
    assert "no such style" in outcome.error.message


def test_library_without_items_fails_to_load():
    outcome = SymbolResolver(TEMPLATE, session=DummySession(DummyResponse({"name": "empty"}))).resolve("S", "park")
    assert isinstance(outcome.error, StyleLoadError)


def test_transport_failure_during_load_is_style_load_error():
    session = DummySession(error=requests.exceptions.ConnectTimeout("slow"))
    outcome = SymbolResolver(TEMPLATE, session=session).resolve("S", "park")
    assert isinstance(outcome.error, StyleLoadError)


def test_loaded_library_is_cached_but_failures_are_not():
    session = DummySession(
        DummyResponse(text="oops", status_code=500, reason="Server Error"),
        DummyResponse(STYLE_ROOT),
    )
    resolver = SymbolResolver(TEMPLATE, session=session)

    assert isinstance(resolver.resolve("S", "park").error, StyleLoadError)
    assert resolver.resolve("S", "park").ok
    assert resolver.resolve("S", "bus").ok
    assert len(session.calls) == 2


def test_bearer_header_sent_when_key_given():
    session = DummySession(DummyResponse(STYLE_ROOT))
    SymbolResolver(TEMPLATE, session=session, api_key="k").resolve("S", "park")
    assert session.calls[0]["headers"] == {"Authorization": "Bearer k"}


def test_style_name_that_is_not_a_plain_name_never_hits_the_network():
    session = DummySession(DummyResponse(STYLE_ROOT))
    resolver = SymbolResolver("https://{style}/root.json", session=session, api_key="k")

    for style in ("evil.test", "../evil", "a/b", ""):
        outcome = resolver.resolve(style, "park")
        assert isinstance(outcome.error, StyleLoadError)

    assert session.calls == []
