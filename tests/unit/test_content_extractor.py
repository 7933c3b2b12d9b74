"""Unit tests for the content_extractor module."""
import json

import pytest

from i18n_translate.content_extractor import (
    SelectionContent,
    extract_content,
    extract_json_content,
    extract_module_pairs,
    extract_selection,
    scan_simple_pairs
)
from i18n_translate.exceptions import ParseError
from i18n_translate.file_context import FileFormat


class TestExtractJsonContent:
    """Fallback chain for data-only selections."""

    def test_complete_object(self):
        assert extract_json_content('{"a": "x", "b": {"c": "y"}}') == {"a": "x", "b": {"c": "y"}}

    def test_root_key_with_nested_object(self):
        text = '"ph": {"message": "hi", "description": ""}'
        assert extract_json_content(text) == {"ph": {"message": "hi", "description": ""}}

    def test_root_key_with_surrounding_whitespace(self):
        text = '\n   "menu": {\n     "open": "Open"\n   }\n'
        assert extract_json_content(text) == {"menu": {"open": "Open"}}

    def test_bare_pairs_are_wrapped(self):
        assert extract_json_content('"a": "x", "b": "y"') == {"a": "x", "b": "y"}

    def test_bare_pairs_with_trailing_comma(self):
        text = '  "login": "Login",\n  "register": "Register",\n'
        assert extract_json_content(text) == {"login": "Login", "register": "Register"}

    def test_scanning_recovers_pairs_from_broken_text(self):
        text = '"a": "x", "b": "y" }, "c": '
        assert extract_json_content(text) == {"a": "x", "b": "y"}

    def test_broken_object_is_not_scanned(self):
        with pytest.raises(ParseError):
            extract_json_content('{"a": "x", "n": 1, broken')

    def test_bare_pairs_ending_in_nested_block_are_not_flattened(self):
        text = '"title": "Home",\n"menu": {"open": "Open", "close": "Close"}'
        with pytest.raises(ParseError):
            extract_json_content(text)

    def test_bare_pairs_cut_inside_nested_block_are_not_flattened(self):
        text = '"title": "Home",\n"menu": {\n  "open": "Open",'
        with pytest.raises(ParseError):
            extract_json_content(text)

    def test_unparseable_root_key_body_raises(self):
        with pytest.raises(ParseError) as exc_info:
            extract_json_content('"menu": {"open": "Open",}')
        assert exc_info.value.details["root_key"] == "menu"

    def test_empty_object_raises(self):
        with pytest.raises(ParseError):
            extract_json_content('{}')

    def test_plain_text_raises(self):
        with pytest.raises(ParseError):
            extract_json_content('just some words')

    def test_json_array_is_not_a_mapping(self):
        with pytest.raises(ParseError):
            extract_json_content('["a", "b"]')


class TestExtractModulePairs:

    def test_single_and_double_quotes(self):
        text = """  'login': 'Login',\n  "register": "Register",\n"""
        assert extract_module_pairs(text) == {"login": "Login", "register": "Register"}

    def test_mixed_quotes_in_one_pair(self):
        assert extract_module_pairs("""'title': "Home",""") == {"title": "Home"}

    def test_no_pairs_raises(self):
        with pytest.raises(ParseError):
            extract_module_pairs("const x = 1;")


class TestExtractContent:

    def test_empty_selection_raises(self):
        with pytest.raises(ParseError):
            extract_content("   \n", FileFormat.DATA)

    def test_module_format_uses_pair_extraction(self):
        assert extract_content("'a': 'b'", FileFormat.MODULE) == {"a": "b"}

    def test_data_format_uses_json_chain(self):
        assert extract_content('{"a": {"b": "c"}}', FileFormat.DATA) == {"a": {"b": "c"}}


class TestSelectionContent:

    def test_extract_selection_keeps_raw_text(self):
        raw = '"a": "x"'
        selection = extract_selection(raw, FileFormat.DATA)
        assert isinstance(selection, SelectionContent)
        assert selection.raw_text == raw
        assert selection.keys == ["a"]

    def test_to_json_keeps_non_ascii(self):
        selection = SelectionContent(raw_text="", content={"login": "登录"})
        assert selection.to_json() == '{"login": "登录"}'
        assert json.loads(selection.to_json()) == {"login": "登录"}


def test_scan_simple_pairs_returns_empty_mapping_without_pairs():
    assert scan_simple_pairs("nothing here") == {}
