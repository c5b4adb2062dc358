"""
Protocol violation tests.

Validates that every call breaking the JSON grammar raises JsonWriterError
and leaves both the output and the writer state exactly as they were.
"""

from collections.abc import Callable
from io import StringIO

import pytest

from jsonbuf import EntityKind
from jsonbuf import JsonBuf
from jsonbuf import JsonWriterError


def _in_object(buf: JsonBuf) -> None:
    buf.begin_object()


def _in_list(buf: JsonBuf) -> None:
    buf.begin_list()


def _after_key(buf: JsonBuf) -> None:
    buf.begin_object()
    buf.write_key("k")


def _at_outer(buf: JsonBuf) -> None:
    pass


@pytest.mark.parametrize(
    "setup,operation,expected_msg",
    [
        (_in_object, lambda b: b.write_int(1), "expected a key:value pair"),
        (_in_object, lambda b: b.write_string("v"), "expected a key"),
        (_in_object, lambda b: b.write_null(), "expected a key"),
        (_in_object, lambda b: b.write_bool(True), "expected a key"),
        (_in_object, lambda b: b.write_double(1.0), "expected a key"),
        (_in_object, lambda b: b.begin_list(), "expected a key"),
        (_in_object, lambda b: b.begin_object(), "expected a key"),
        (_in_object, lambda b: b.unsafe_write_value("1"), "expected a key"),
        (_in_object, lambda b: b.write_json_value([1]), "expected a key"),
        (_in_object, lambda b: b.end_list(), "cannot close LIST"),
        (_at_outer, lambda b: b.write_key("k"), "outside of an object"),
        (_in_list, lambda b: b.write_key("k"), "outside of an object"),
        (_after_key, lambda b: b.write_key("k"), "outside of an object"),
        (_in_list, lambda b: b.unsafe_write_key("k"), "outside of an object"),
        (_in_list, lambda b: b.unsafe_write_pair('"a":1'), "outside"),
        (_at_outer, lambda b: b.end_list(), "cannot close LIST"),
        (_at_outer, lambda b: b.end_object(), "cannot close OBJECT"),
        (_in_list, lambda b: b.end_object(), "cannot close OBJECT"),
        (_after_key, lambda b: b.end_object(), "innermost construct is PAIR"),
        (_after_key, lambda b: b.end_list(), "cannot close LIST"),
        (_in_list, lambda b: b.write_uint(-1), "negative value"),
    ],
)
def test_violation_leaves_writer_untouched(
    setup: Callable[[JsonBuf], None],
    operation: Callable[[JsonBuf], object],
    expected_msg: str,
) -> None:
    """
    Validates rejection of grammar violations without side effects.
    """
    buf = JsonBuf()
    setup(buf)
    state = buf.state()
    text = buf.getvalue()

    with pytest.raises(JsonWriterError, match=expected_msg):
        operation(buf)

    assert buf.state() == state
    assert buf.getvalue() == text


def test_end_list_inside_object_keeps_stack(buf: JsonBuf) -> None:
    """
    Validates that a mismatched end_list does not alter the stack.
    """
    buf.begin_list()
    buf.begin_object()

    with pytest.raises(JsonWriterError):
        buf.end_list()

    assert buf.state().stack == (
        EntityKind.OUTER_SPACE,
        EntityKind.LIST,
        EntityKind.OBJECT,
    )

    buf.end_object()
    buf.end_list()
    assert buf.getvalue() == "[{}]"


def test_writer_recovers_after_error(buf: JsonBuf) -> None:
    """
    Validates that writing continues normally after a rejected call.
    """
    buf.begin_object()
    with pytest.raises(JsonWriterError):
        buf.write_int(1)

    buf.write_key("a")
    buf.write_int(1)
    buf.end_object()

    assert buf.getvalue() == '{"a":1}'


def test_excess_close_after_balanced_document(buf: JsonBuf) -> None:
    """
    Validates that the outer level can never be closed.
    """
    buf.begin_list()
    buf.end_list()

    with pytest.raises(JsonWriterError):
        buf.end_list()

    assert buf.getvalue() == "[]"
    assert buf.state().stack == (EntityKind.OUTER_SPACE,)


def test_error_is_value_error_with_prefix(buf: JsonBuf) -> None:
    """
    Validates the error type hierarchy and message format.
    """
    with pytest.raises(ValueError) as exc_info:
        buf.end_object()

    err = exc_info.value
    assert isinstance(err, JsonWriterError)
    assert str(err).startswith("JSON writer: ")
    assert err.msg == "cannot close OBJECT, innermost construct is OUTER_SPACE"


def test_buffer_access_with_external_stream() -> None:
    """
    Validates that getvalue and flush_to need the internal buffer.
    """
    buf = JsonBuf(stream=StringIO())
    buf.write_null()

    with pytest.raises(JsonWriterError, match="needs the internal buffer"):
        buf.getvalue()
    with pytest.raises(JsonWriterError, match="needs the internal buffer"):
        buf.flush_to(StringIO())


def test_non_integer_rejected(buf: JsonBuf) -> None:
    """
    Validates that integer writers refuse floats before writing.
    """
    with pytest.raises(TypeError):
        buf.write_int(1.5)  # type: ignore[arg-type]

    assert buf.getvalue() == ""
