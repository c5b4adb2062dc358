"""
Pytest configuration and shared fixtures for jsonbuf tests.

Provides immutable test case data for escaping and whole-document
serialization so individual test modules stay focused on behavior.
"""

from dataclasses import dataclass
from typing import Any

import pytest

import jsonbuf
from jsonbuf import EscapeMode


@dataclass(frozen=True)
class EscapeTestCase:
    """
    Immutable container for one escaping expectation.

    Holds the raw input, the mode, and the literal body the writer must emit.
    """

    description: str
    input_data: str
    mode: EscapeMode
    expected_body: str


@dataclass(frozen=True)
class DocumentTestCase:
    """Immutable container pairing a value tree with its compact JSON text."""

    description: str
    value: Any
    expected_output: str


@pytest.fixture
def buf() -> jsonbuf.JsonBuf:
    """Provides a fresh compact writer with an internal buffer."""
    return jsonbuf.JsonBuf()


@pytest.fixture
def escape_cases() -> list[EscapeTestCase]:
    """
    Provides escaping expectations for every mode.

    The same HTML-significant input is repeated across modes so the
    differences between them are easy to read.
    """
    markup = "</script>&"
    return [
        EscapeTestCase(
            "markup, html mode",
            markup,
            EscapeMode.ESCAPE_HTML,
            "&lt;\\/script&gt;&amp;",
        ),
        EscapeTestCase(
            "markup, json mode",
            markup,
            EscapeMode.DONT_ESCAPE_HTML,
            "\\u003C\\/script\\u003E\\u0026",
        ),
        EscapeTestCase(
            "markup, relaxed mode",
            markup,
            EscapeMode.RELAXED,
            "\\u003C/script\\u003E\\u0026",
        ),
        EscapeTestCase(
            "markup, unsafe mode",
            markup,
            EscapeMode.UNSAFE,
            "</script>&",
        ),
        EscapeTestCase(
            "quote and entities, html mode",
            '<a>&"b"',
            EscapeMode.ESCAPE_HTML,
            '&lt;a&gt;&amp;\\"b\\"',
        ),
        EscapeTestCase(
            "short control escapes",
            "\b\f\n\r\t",
            EscapeMode.UNSAFE,
            "\\b\\f\\n\\r\\t",
        ),
        EscapeTestCase(
            "hex control escapes",
            "\x00\x01\x1f",
            EscapeMode.UNSAFE,
            "\\u0000\\u0001\\u001F",
        ),
        EscapeTestCase(
            "quote and backslash",
            'say "hi" \\ bye',
            EscapeMode.RELAXED,
            'say \\"hi\\" \\\\ bye',
        ),
        EscapeTestCase(
            "non-ascii passes through",
            "h\u00e9llo \u2603 \U0001f600",
            EscapeMode.DONT_ESCAPE_HTML,
            "h\u00e9llo \u2603 \U0001f600",
        ),
        EscapeTestCase(
            "delete is not a control escape",
            "\x7f",
            EscapeMode.DONT_ESCAPE_HTML,
            "\x7f",
        ),
    ]


@pytest.fixture
def document_cases() -> list[DocumentTestCase]:
    """
    Provides value trees with their expected compact serialization.

    Covers all JSON value kinds and both container types, nested.
    """
    return [
        DocumentTestCase("null value", None, "null"),
        DocumentTestCase("true boolean", True, "true"),
        DocumentTestCase("false boolean", False, "false"),
        DocumentTestCase("integer", 42, "42"),
        DocumentTestCase("negative integer", -17, "-17"),
        DocumentTestCase("big integer", 2**70, str(2**70)),
        DocumentTestCase("float", 3.14, "3.14"),
        DocumentTestCase("tiny float", 1e-300, "1e-300"),
        DocumentTestCase("empty string", "", '""'),
        DocumentTestCase("simple string", "hello", '"hello"'),
        DocumentTestCase("empty array", [], "[]"),
        DocumentTestCase("empty object", {}, "{}"),
        DocumentTestCase("simple array", [1, 2, 3], "[1,2,3]"),
        DocumentTestCase("simple object", {"key": "value"}, '{"key":"value"}'),
        DocumentTestCase(
            "nested structure",
            {"a": 1, "b": [1, 2, {"c": [None, True]}], "d": {}},
            '{"a":1,"b":[1,2,{"c":[null,true]}],"d":{}}',
        ),
        DocumentTestCase(
            "deep nesting",
            [[[[[[[[[[[[[[[[[[["Not too deep"]]]]]]]]]]]]]]]]]]],
            '[[[[[[[[[[[[[[[[[[["Not too deep"]]]]]]]]]]]]]]]]]]]',
        ),
    ]
