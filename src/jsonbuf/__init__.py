"""
Incremental JSON text builder with grammar-checked call sequencing.

Documents are emitted token by token: open a list or object, write keys and
values, close. A stack of open constructs rejects every call that would make
the output invalid JSON, and typed context handles let a type checker catch
most of those mistakes before the code runs.
"""

from __future__ import annotations

import logging
import math
import operator
import warnings
from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import replace
from enum import Enum
from io import StringIO
from typing import IO
from typing import Any

from ._escape import EscapeMode
from ._escape import escape_string
from ._escape import quote_string
from ._floats import FloatFormat
from ._floats import format_float
from ._floats import format_int
from ._floats import nonfinite_text
from ._floats import to_float32
from ._profile import HotPathStats
from ._profile import ProfileContext
from ._profile import clear_hot_path_stats
from ._profile import get_hot_path_stats

__version__ = "0.1.0"

# Value trees: dicts with str keys, lists, tuples and JSON scalars
JsonValueLoose = Any

logger = logging.getLogger(__name__)


class EntityKind(Enum):
    """
    Kind of construct open at one nesting level.

    PAIR marks the value slot right after a key inside an object.
    """

    OUTER_SPACE = "outer_space"
    LIST = "list"
    OBJECT = "object"
    PAIR = "pair"


class JsonWriterError(ValueError):
    """
    Signals a call that would break the JSON grammar or misuse the writer.

    Raised before anything is written, so the writer stays usable.
    """

    def __init__(self, msg: str) -> None:
        self.msg = msg
        super().__init__(f"JSON writer: {msg}")


@dataclass(frozen=True)
class WriterConfig:
    """
    Configures writer output with immutable settings.

    An indent of zero disables pretty-printing.
    """

    escape_mode: EscapeMode = EscapeMode.DONT_ESCAPE_HTML
    indent_spaces: int = 0
    write_nan_as_string: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.escape_mode, EscapeMode):
            raise TypeError("escape_mode must be an EscapeMode")
        if isinstance(self.indent_spaces, bool) or not isinstance(
            self.indent_spaces, int
        ):
            raise TypeError("indent_spaces must be an integer")
        if self.indent_spaces < 0:
            raise ValueError("indent_spaces must be non-negative")
        if not isinstance(self.write_nan_as_string, bool):
            raise TypeError("write_nan_as_string must be a boolean")


@dataclass(frozen=True)
class BufState:
    """
    Snapshot of the writer's protocol bookkeeping.

    Holds no reference to the writer and says nothing about text already
    emitted; restoring it only rewinds the grammar position.
    """

    need_comma: bool
    need_newline: bool
    stack: tuple[EntityKind, ...]

    def __post_init__(self) -> None:
        if not self.stack or self.stack[0] is not EntityKind.OUTER_SPACE:
            raise ValueError("stack must start with OUTER_SPACE")
        if EntityKind.OUTER_SPACE in self.stack[1:]:
            raise ValueError("OUTER_SPACE may only appear at the bottom")


class JsonBuf:
    """
    Writes a JSON document incrementally while enforcing its grammar.

    Without a stream the text accumulates in an internal buffer, readable
    with getvalue() or moved out with flush_to(). With a stream every token
    is written through immediately. The choice is fixed at construction.
    """

    def __init__(
        self,
        escape_mode: EscapeMode = EscapeMode.DONT_ESCAPE_HTML,
        stream: IO[str] | None = None,
        *,
        indent_spaces: int = 0,
        write_nan_as_string: bool = False,
        config: WriterConfig | None = None,
    ) -> None:
        if config is None:
            config = WriterConfig(
                escape_mode, indent_spaces, write_nan_as_string
            )
        self._config = config

        self._buffer: StringIO | None = None
        if stream is None:
            self._buffer = StringIO()
            stream = self._buffer
        self._stream: IO[str] = stream

        self._stack: list[EntityKind] = [EntityKind.OUTER_SPACE]
        self._need_comma = False
        self._need_newline = False

    @property
    def config(self) -> WriterConfig:
        return self._config

    def set_indent_spaces(self, spaces: int) -> None:
        """Indents the output with ``spaces`` per level; 0 turns it off."""
        self._config = replace(self._config, indent_spaces=spaces)

    def set_write_nan_as_string(self, write_nan_as_string: bool = True) -> None:
        """
        Writes NaN and infinities as strings instead of raising.

        They are not valid JSON numbers, so the default is to refuse them.
        """
        self._config = replace(
            self._config, write_nan_as_string=write_nan_as_string
        )

    # Grammar bookkeeping

    def _error(self, msg: str) -> JsonWriterError:
        logger.debug(
            "JSON writer: %s (stack=%s)",
            msg,
            [kind.name for kind in self._stack],
        )
        return JsonWriterError(msg)

    def _top(self) -> EntityKind:
        return self._stack[-1]

    def key_expected(self) -> bool:
        """True when the writer sits inside an object waiting for a key."""
        return self._top() is EntityKind.OBJECT

    def _check_value_allowed(self) -> None:
        if self.key_expected():
            raise self._error("value written, but expected a key:value pair")

    def _check_key_allowed(self) -> None:
        if not self.key_expected():
            raise self._error("key written outside of an object")

    def _indentation(self, closing: bool) -> str:
        """Newline and spaces preceding the next token, if indenting."""
        if not self._config.indent_spaces:
            return ""
        depth = sum(
            1
            for kind in self._stack
            if kind in (EntityKind.LIST, EntityKind.OBJECT)
        )
        if closing:
            depth -= 1
        elif depth == 0:
            # Outer-level values start at column zero
            return ""
        return "\n" + " " * (depth * self._config.indent_spaces)

    def _write_comma(self) -> None:
        separator = "," if self._need_comma else ""
        self._need_comma = True
        self._need_newline = False
        self._stream.write(separator + self._indentation(closing=False))

    def _begin_value(self) -> None:
        self._check_value_allowed()
        # A key already wrote the separator for its value
        if self._top() is not EntityKind.PAIR:
            self._write_comma()

    def _end_value(self) -> None:
        if self._top() is EntityKind.PAIR:
            self._stack.pop()

    def _begin_key(self) -> None:
        self._check_key_allowed()
        self._write_comma()
        self._stack.append(EntityKind.PAIR)

    def _close(self, kind: EntityKind, bracket: str) -> None:
        top = self._top()
        if top is not kind:
            raise self._error(
                f"cannot close {kind.name}, innermost construct is {top.name}"
            )
        if self._need_newline:
            # Nothing was written inside, keep it compact
            self._need_newline = False
            self._stream.write(bracket)
        else:
            self._stream.write(self._indentation(closing=True) + bracket)
        self._stack.pop()
        self._need_comma = True
        self._end_value()

    def _write_value(self, token: str) -> ValueContext:
        self._begin_value()
        self._stream.write(token)
        self._end_value()
        return ValueContext(self)

    # Values

    def write_string(
        self, s: str, escape_mode: EscapeMode | None = None
    ) -> ValueContext:
        """Writes ``s`` as a string literal, escaped per ``escape_mode``."""
        if not isinstance(s, str):
            raise TypeError(f"string value must be str, not {type(s).__name__}")
        if escape_mode is None:
            escape_mode = self._config.escape_mode
        return self._write_value(quote_string(s, escape_mode))

    def write_int(self, value: int) -> ValueContext:
        return self._write_value(format_int(operator.index(value)))

    def write_uint(self, value: int) -> ValueContext:
        """Writes a non-negative integer; negative values are rejected."""
        value = operator.index(value)
        if value < 0:
            raise self._error(f"negative value {value} for unsigned integer")
        return self._write_value(format_int(value))

    def write_bool(self, value: bool) -> ValueContext:
        if not isinstance(value, bool):
            raise TypeError(
                f"bool value must be bool, not {type(value).__name__}"
            )
        return self._write_value("true" if value else "false")

    def write_null(self) -> ValueContext:
        return self._write_value("null")

    def _write_floating(
        self, value: float, mode: FloatFormat, ndigits: int, single: bool
    ) -> ValueContext:
        if isinstance(value, bool) or not isinstance(value, int | float):
            raise TypeError(
                f"float value must be int or float, not {type(value).__name__}"
            )
        value = float(value)
        if single:
            value = to_float32(value)
        if not math.isfinite(value):
            if not self._config.write_nan_as_string:
                text = nonfinite_text(value)
                raise self._error(f"invalid float value: {text}")
            return self.write_string(nonfinite_text(value))
        token = format_float(value, mode, ndigits, single=single)
        return self._write_value(token)

    def write_float(
        self,
        value: float,
        mode: FloatFormat = FloatFormat.NDIGITS,
        ndigits: int = 6,
    ) -> ValueContext:
        """Writes ``value`` rounded to single precision."""
        return self._write_floating(value, mode, ndigits, single=True)

    def write_double(
        self,
        value: float,
        mode: FloatFormat = FloatFormat.NDIGITS,
        ndigits: int = 10,
    ) -> ValueContext:
        """Writes ``value`` at double precision."""
        return self._write_floating(value, mode, ndigits, single=False)

    def write_json_value(
        self, value: JsonValueLoose, sort_keys: bool = False
    ) -> ValueContext:
        """
        Writes a whole value tree made of dicts, lists and scalars.

        Floats are written in their shortest round-trip form. With
        ``sort_keys`` every object, at any depth, is written in key order.
        Nothing reaches the output unless the whole tree is written.

        Raises:
            TypeError: A node or key cannot be represented in JSON
            JsonWriterError: The writer expects a key, or a float is not
                finite and the writer refuses NaN
        """
        self._check_value_allowed()
        scratch = JsonBuf(config=self._config)
        scratch._restore(self.state())
        with ProfileContext("write_json_value") as profile:
            scratch._dump_value(value, sort_keys)
            text = profile.emitted(scratch.getvalue())
        self._stream.write(text)
        self._restore(scratch.state())
        return ValueContext(self)

    def _dump_value(  # noqa: PLR0912
        self, value: JsonValueLoose, sort_keys: bool
    ) -> None:
        if value is None:
            self.write_null()
        elif value is True or value is False:
            self.write_bool(value)
        elif isinstance(value, str):
            self.write_string(value)
        elif isinstance(value, int):
            self.write_int(value)
        elif isinstance(value, float):
            self.write_double(value, FloatFormat.AUTO)
        elif isinstance(value, dict):
            for key in value:
                if not isinstance(key, str):
                    msg = f"keys must be str, not {type(key).__name__}"
                    raise TypeError(msg)
            items = list(value.items())
            if sort_keys:
                items.sort(key=lambda item: item[0])
            self.begin_object()
            for key, item in items:
                self.write_key(key)
                try:
                    self._dump_value(item, sort_keys)
                except TypeError as exc:
                    exc.add_note(f"when serializing dict item {key!r}")
                    raise
            self.end_object()
        elif isinstance(value, list | tuple):
            self.begin_list()
            for index, item in enumerate(value):
                try:
                    self._dump_value(item, sort_keys)
                except TypeError as exc:
                    exc.add_note(f"when serializing list item {index}")
                    raise
            self.end_list()
        else:
            name = type(value).__name__
            msg = f"Object of type {name} is not JSON serializable"
            raise TypeError(msg)

    # Containers

    def begin_list(self) -> ValueContext:
        self._begin_value()
        self._stream.write("[")
        self._stack.append(EntityKind.LIST)
        self._need_comma = False
        self._need_newline = True
        return ValueContext(self)

    def end_list(self) -> JsonBuf:
        self._close(EntityKind.LIST, "]")
        return self

    def begin_object(self) -> PairContext:
        self._begin_value()
        self._stream.write("{")
        self._stack.append(EntityKind.OBJECT)
        self._need_comma = False
        self._need_newline = True
        return PairContext(self)

    def write_key(
        self, key: str, escape_mode: EscapeMode | None = None
    ) -> AfterColonContext:
        """Writes an escaped, quoted key and the colon after it."""
        if not isinstance(key, str):
            raise TypeError(f"key must be str, not {type(key).__name__}")
        if escape_mode is None:
            escape_mode = self._config.escape_mode
        token = quote_string(key, escape_mode) + ":"
        self._begin_key()
        self._stream.write(token)
        return AfterColonContext(self)

    def end_object(self) -> JsonBuf:
        self._close(EntityKind.OBJECT, "}")
        return self

    # Escape hatch: the caller vouches for the text written below

    def unsafe_write_value(self, s: str) -> ValueContext:
        """
        Writes ``s`` verbatim as one JSON value.

        Example: ``buf.unsafe_write_value('[1, 2, "o\\'clock"]')``. No
        escaping or validation is done.
        """
        return self._write_value(s)

    def unsafe_write_key(self, key: str) -> AfterColonContext:
        """Writes ``key`` quoted but unescaped, followed by a colon."""
        self._begin_key()
        self._stream.write(f'"{key}":')
        return AfterColonContext(self)

    def compat_write_key_without_quotes(self, key: str) -> AfterColonContext:
        """Writes ``key`` with neither quotes nor escaping. Deprecated."""
        warnings.warn(
            "compat_write_key_without_quotes produces invalid JSON, "
            "use write_key instead",
            DeprecationWarning,
            stacklevel=2,
        )
        self._begin_key()
        self._stream.write(f"{key}:")
        return AfterColonContext(self)

    def unsafe_write_pair(self, s: str) -> PairContext:
        """
        Writes one or more literal ``key: value`` pairs inside an object.

        Example: ``buf.unsafe_write_pair('"adam": "male", "eve": "female"')``.
        """
        self._check_key_allowed()
        self._write_comma()
        self._stream.write(s)
        return PairContext(self)

    def unsafe_write_raw_bytes(self, s: str | bytes) -> None:
        """Copies ``s`` straight to the output, skipping all bookkeeping."""
        if isinstance(s, bytes):
            s = s.decode("utf-8")
        self._stream.write(s)

    # Output

    def getvalue(self) -> str:
        """Returns the text written so far to the internal buffer."""
        if self._buffer is None:
            raise self._error("getvalue() needs the internal buffer")
        return self._buffer.getvalue()

    def flush_to(self, stream: IO[str]) -> None:
        """Moves the buffered text into ``stream`` and empties the buffer."""
        if self._buffer is None:
            raise self._error("flush_to() needs the internal buffer")
        text = self._buffer.getvalue()
        stream.write(text)
        self._buffer.seek(0)
        self._buffer.truncate()
        logger.debug("flushed %d characters", len(text))

    # Snapshots

    def state(self) -> BufState:
        """Captures the grammar position as an independent snapshot."""
        return BufState(
            self._need_comma, self._need_newline, tuple(self._stack)
        )

    def _restore(self, state: BufState) -> None:
        self._stack = list(state.stack)
        self._need_comma = state.need_comma
        self._need_newline = state.need_newline

    def reset(self, state: BufState) -> None:
        """
        Returns the grammar position to ``state``.

        Text already written stays where it is; pair this with a sink that can
        be truncated when the bytes must be rolled back too.
        """
        if not isinstance(state, BufState):
            raise TypeError("state must be a BufState")
        self._restore(state)
        logger.debug(
            "writer reset to stack=%s", [kind.name for kind in state.stack]
        )


class ValueWriter[OutContext]:
    """
    Value-writing operations shared by the context handles.

    Every operation returns ``OutContext``, the handle for the grammar state
    reached once the value is complete.
    """

    def __init__(
        self, buf: JsonBuf, out: Callable[[JsonBuf], OutContext]
    ) -> None:
        self._buf = buf
        self._out = out

    def write_string(
        self, s: str, escape_mode: EscapeMode | None = None
    ) -> OutContext:
        self._buf.write_string(s, escape_mode)
        return self._out(self._buf)

    def write_int(self, value: int) -> OutContext:
        self._buf.write_int(value)
        return self._out(self._buf)

    def write_uint(self, value: int) -> OutContext:
        self._buf.write_uint(value)
        return self._out(self._buf)

    def write_bool(self, value: bool) -> OutContext:
        self._buf.write_bool(value)
        return self._out(self._buf)

    def write_null(self) -> OutContext:
        self._buf.write_null()
        return self._out(self._buf)

    def write_float(
        self,
        value: float,
        mode: FloatFormat = FloatFormat.NDIGITS,
        ndigits: int = 6,
    ) -> OutContext:
        self._buf.write_float(value, mode, ndigits)
        return self._out(self._buf)

    def write_double(
        self,
        value: float,
        mode: FloatFormat = FloatFormat.NDIGITS,
        ndigits: int = 10,
    ) -> OutContext:
        self._buf.write_double(value, mode, ndigits)
        return self._out(self._buf)

    def write_json_value(
        self, value: JsonValueLoose, sort_keys: bool = False
    ) -> OutContext:
        self._buf.write_json_value(value, sort_keys)
        return self._out(self._buf)

    def unsafe_write_value(self, s: str) -> OutContext:
        self._buf.unsafe_write_value(s)
        return self._out(self._buf)

    def begin_list(self) -> ValueContext:
        return self._buf.begin_list()

    def begin_object(self) -> PairContext:
        return self._buf.begin_object()


class ValueContext(ValueWriter["ValueContext"]):
    """Handle after a value at the outer level or inside a list."""

    def __init__(self, buf: JsonBuf) -> None:
        super().__init__(buf, ValueContext)

    def end_list(self) -> JsonBuf:
        return self._buf.end_list()

    def getvalue(self) -> str:
        return self._buf.getvalue()


class PairContext:
    """Handle inside an object where the next token must be a key or the end."""

    def __init__(self, buf: JsonBuf) -> None:
        self._buf = buf

    def write_key(
        self, key: str, escape_mode: EscapeMode | None = None
    ) -> AfterColonContext:
        return self._buf.write_key(key, escape_mode)

    def unsafe_write_key(self, key: str) -> AfterColonContext:
        return self._buf.unsafe_write_key(key)

    def compat_write_key_without_quotes(self, key: str) -> AfterColonContext:
        return self._buf.compat_write_key_without_quotes(key)

    def unsafe_write_pair(self, s: str) -> PairContext:
        return self._buf.unsafe_write_pair(s)

    def end_object(self) -> JsonBuf:
        return self._buf.end_object()


class AfterColonContext(ValueWriter[PairContext]):
    """Handle right after a key: exactly one value must follow."""

    def __init__(self, buf: JsonBuf) -> None:
        super().__init__(buf, PairContext)


def dumps(
    obj: JsonValueLoose, *, sort_keys: bool = False, **kwargs: Any
) -> str:
    """
    Serializes a value tree to a JSON string.

    Keyword arguments other than ``sort_keys`` build the WriterConfig.
    """
    buf = JsonBuf(config=WriterConfig(**kwargs))
    buf.write_json_value(obj, sort_keys)
    return buf.getvalue()


def dump(
    obj: JsonValueLoose, fp: IO[str], *, sort_keys: bool = False, **kwargs: Any
) -> None:
    """
    Serializes a value tree straight into a writable text stream.
    """
    if not hasattr(fp, "write"):
        raise TypeError("fp must have a write() method")

    buf = JsonBuf(stream=fp, config=WriterConfig(**kwargs))
    buf.write_json_value(obj, sort_keys)


__all__ = [
    "AfterColonContext",
    "BufState",
    "EntityKind",
    "EscapeMode",
    "FloatFormat",
    "HotPathStats",
    "JsonBuf",
    "JsonWriterError",
    "PairContext",
    "ValueContext",
    "ValueWriter",
    "WriterConfig",
    "clear_hot_path_stats",
    "dump",
    "dumps",
    "escape_string",
    "get_hot_path_stats",
    "quote_string",
]
