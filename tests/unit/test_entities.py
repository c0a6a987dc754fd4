import pytest

from staffdir.pipeline.entities import DEFAULT_ENTITY_TABLE, decode_entities


def test_umlaut_and_ampersand():
    assert decode_entities("M&uuml;ller &amp; Co") == "Müller & Co"


def test_all_default_entities_decode():
    s = "&amp;&nbsp;&ouml;&uuml;&auml;&Ouml;&Uuml;&Auml;&szlig;&#39;&quot;"
    assert decode_entities(s) == "& öüäÖÜÄß'\""


def test_decoded_ampersand_is_not_rescanned():
    # "&amp;uuml;" is the escaped text "&uuml;", not an umlaut
    assert decode_entities("&amp;uuml;") == "&uuml;"
    assert decode_entities("&amp;amp;") == "&amp;"


def test_unlisted_entities_pass_through():
    assert decode_entities("Caf&eacute; &lt;b&gt;") == "Caf&eacute; &lt;b&gt;"


@pytest.mark.parametrize(
    "raw",
    [
        "Mueller Anna, Prof.",
        "Gr&ouml;&szlig;er, Hans",
        "&quot;Huber&quot; &amp; S&ouml;hne",
        "plain text without entities",
        "",
    ],
)
def test_idempotent_on_decoded_text(raw: str):
    once = decode_entities(raw)
    assert decode_entities(once) == once


def test_custom_table_replaces_defaults():
    table = {"&hellip;": "…"}
    assert decode_entities("Warte&hellip; &amp;", table) == "Warte… &amp;"


def test_custom_table_as_pairs_and_empty_table():
    assert decode_entities("&lt;x&gt;", [("&lt;", "<"), ("&gt;", ">")]) == "<x>"
    assert decode_entities("&amp;", {}) == "&amp;"


def test_default_table_starts_with_ampersand():
    assert DEFAULT_ENTITY_TABLE[0] == ("&amp;", "&")
