"""Tests for plain-text sanitization."""

from helpers.sanitization import clean_text, sanitize_plain_text


class TestSanitizePlainText:
    def test_strips_tags(self) -> None:
        assert sanitize_plain_text("<b>Broken</b> light") == "Broken light"

    def test_script_tags_are_removed(self) -> None:
        result = sanitize_plain_text("<script>alert(1)</script>Pothole")
        assert "<script>" not in result
        assert "Pothole" in result

    def test_plain_text_unchanged(self) -> None:
        assert sanitize_plain_text("Pothole on Main Street") == (
            "Pothole on Main Street"
        )

    def test_none_passthrough(self) -> None:
        assert sanitize_plain_text(None) is None


class TestCleanText:
    def test_strips_whitespace(self) -> None:
        assert clean_text("  <i>hello</i>  ") == "hello"

    def test_missing_input_is_empty(self) -> None:
        assert clean_text(None) == ""
        assert clean_text("<br>") == ""
