from __future__ import annotations

from factory_portal.utils.validators import escape_html, join_label, preview_text, sanitize_text


def test_preview_text_keeps_exactly_eighty_characters():
    message = "x" * 80
    assert preview_text(message) == message


def test_preview_text_truncates_eighty_one_characters_with_single_ellipsis():
    message = "y" * 81
    assert preview_text(message) == "y" * 80 + "…"
    assert len(preview_text(message)) == 81


def test_preview_text_handles_missing_message():
    assert preview_text(None) == ""


def test_sanitize_text_strips_null_and_trims():
    assert sanitize_text("  hello\x00world  ") == "helloworld"
    assert sanitize_text("abcdef", max_len=3) == "abc"


def test_escape_html_escapes_markup_and_quotes():
    assert escape_html('<b>"Hype"</b>') == "&lt;b&gt;&quot;Hype&quot;&lt;/b&gt;"


def test_join_label_skips_empty_parts():
    assert join_label("Hype GTR", "Interstellar") == "Hype GTR – Interstellar"
    assert join_label("Hype GTR", "") == "Hype GTR"
    assert join_label(None, None) == ""
