"""Tests for the built-in resolvers."""

import datetime
import json
import uuid

from structlog.testing import capture_logs

from bulkplan.kernel.builtin_resolvers import (
    BUILTIN_RESOLVERS,
    format_udi,
    resolve_many_legacy_ids,
    resolve_single_legacy_id,
)
from bulkplan.kernel.key_cache import KeyCache


def test_default_registry_holds_every_builtin(registry):
    assert len(registry) == len(BUILTIN_RESOLVERS)
    for alias in ("text", "boolean", "dateTime", "objectToJson", "stringArray", "textToLink",
                  "urlToMedia", "pathToMedia", "legacyContentPicker", "legacyContentPickers"):
        assert alias in registry
    assert registry.get("legacyContentPicker").resolver.is_deferred
    assert not registry.get("urlToMedia").resolver.is_deferred


def test_text(registry, run):
    text = registry.get("text")
    assert text.resolve("hello", run) == "hello"
    assert text.resolve(None, run) is None
    assert text.resolve("a|b", run) == "a|b"


def test_boolean(registry, run):
    boolean = registry.get("boolean")
    assert boolean.resolve("TRUE", run) is True
    assert boolean.resolve(" false ", run) is False
    assert boolean.resolve(True, run) is True
    assert boolean.resolve("yes", run) is False
    assert boolean.resolve("1", run) is False
    assert boolean.resolve(1, run) is False
    assert boolean.resolve("no", run) is False
    assert boolean.resolve("", run) is False
    assert boolean.resolve(None, run) is False


def test_date_time(registry, run):
    date_time = registry.get("dateTime")
    assert date_time.resolve("2025-09-12 14:30", run) == "2025-09-12T14:30:00"
    assert date_time.resolve("2025-09-12", run) == "2025-09-12T00:00:00"
    assert date_time.resolve("2025-09-12T14:30:00Z", run) == "2025-09-12T14:30:00+00:00"
    assert date_time.resolve("09/12/2025", run) == "2025-09-12T00:00:00"
    assert date_time.resolve("12 September 2025", run) == "2025-09-12T00:00:00"
    assert date_time.resolve(datetime.date(2025, 9, 12), run) == "2025-09-12T00:00:00"


def test_date_time_unparseable_is_empty(registry, run):
    date_time = registry.get("dateTime")
    assert date_time.resolve("next tuesday", run) == ""
    assert date_time.resolve("", run) == ""
    assert date_time.resolve(None, run) == ""
    assert date_time.resolve(20250912, run) == ""


def test_object_to_json(registry, run):
    to_json = registry.get("objectToJson")
    assert to_json.resolve("abc", run) == '"abc"'
    assert json.loads(to_json.resolve({"a": [1, 2]}, run)) == {"a": [1, 2]}
    assert to_json.resolve(False, run) == "false"
    assert to_json.resolve(None, run) is None


def test_string_array(registry, run):
    array = registry.get("stringArray")
    assert json.loads(array.resolve("red, green,,blue ", run)) == ["red", "green", "blue"]
    assert array.resolve("", run) == "[]"


def test_text_to_link(registry, run):
    link = registry.get("textToLink")
    assert json.loads(link.resolve("example.com", run)) == [
        {"name": "https://example.com", "url": "https://example.com", "type": "external"}
    ]
    assert json.loads(link.resolve("http://a.b", run))[0]["url"] == "http://a.b"
    assert link.resolve("  ", run) is None


def test_format_udi():
    guid = uuid.UUID("12345678-1234-5678-1234-567812345678")
    assert format_udi("document", guid) == "umb://document/12345678123456781234567812345678"
    assert format_udi("media", 1234) == "umb://media/1234"


def test_url_to_media_uses_preprocessed_cache(registry, run):
    run.media_items.add("https://x/y.jpg", 5)
    media = registry.get("urlToMedia")
    assert media.resolve("HTTPS://X/Y.JPG|/Blog", run) == "umb://media/5"


def test_media_not_preprocessed_resolves_to_empty(registry, run):
    with capture_logs() as logs:
        assert registry.get("pathToMedia").resolve("/img/a.png", run) == ""
    assert logs[0]["event"] == "resolver.media_not_preprocessed"


def test_blank_media_value(registry, run):
    assert registry.get("urlToMedia").resolve("  ", run) == ""


def test_single_picker_resolves_created_item():
    cache = KeyCache()
    cache.add("42", 1001)
    assert resolve_single_legacy_id(" 42 ", cache) == "umb://document/1001"
    assert resolve_single_legacy_id("43", cache) == ""
    assert resolve_single_legacy_id("", cache) == ""


def test_multi_picker_omits_missing_ids():
    """A referenced ID that was never created is dropped, the rest still resolve."""
    cache = KeyCache()
    cache.add("1", "a")
    cache.add("3", "c")
    assert resolve_many_legacy_ids("1, 2 ,3", cache) == "umb://document/a,umb://document/c"
    assert resolve_many_legacy_ids("2", cache) == ""


def test_picker_dependencies_extraction(registry):
    assert registry.get("legacyContentPickers").extract_dependencies("1, 2,,3 ") == ["1", "2", "3"]
    assert registry.get("legacyContentPicker").extract_dependencies(" 7 ") == ["7"]
    assert registry.get("legacyContentPicker").extract_dependencies("") == []
