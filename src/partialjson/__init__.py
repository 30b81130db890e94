"""
Completion and decoding of truncated JSON documents.

Turns a possibly-truncated JSON text, such as a prefix of a document that is
still being streamed, into a complete document or a decoded value. Offers a
precise recursive-descent path and a fast path that only re-parses the
innermost unclosed container.
"""

import logging
import math
import os
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import IO
from typing import Any

import orjson
from pydantic import TypeAdapter

from partialjson._delimiters import WHITESPACE
from partialjson._delimiters import DelimiterStack
from partialjson._delimiters import close_truncated_object

__version__ = "0.1.0"

logger = logging.getLogger(__name__)

# Type aliases for domain concepts - recursive definition
JsonValue = (
    str | int | float | bool | None | dict[str, "JsonValue"] | list["JsonValue"]
)
type Position = int

# Observer called with (text, parsed value, unconsumed remainder)
ExtraTokenObserver = Callable[[str, JsonValue, str], None]

DEFAULT_MAX_DEPTH = 256

_DIGITS = frozenset("0123456789")
_NUMBER_START = frozenset("-.0123456789")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

# Profiling infrastructure - zero-cost when disabled
PROFILE_HOT_PATHS = __debug__ and "PARTIALJSON_PROFILE" in os.environ


@dataclass
class HotPathStats:
    """Statistics for one profiled parsing rule."""

    function_name: str
    call_count: int = 0
    total_time_ns: int = 0
    chars_processed: int = 0

    def record_call(self, duration_ns: int, chars: int = 0) -> None:
        self.call_count += 1
        self.total_time_ns += duration_ns
        self.chars_processed += chars


if PROFILE_HOT_PATHS:
    _hot_path_stats: dict[str, HotPathStats] = {}

    class ProfileContext:
        """Context manager timing one call of a parsing rule."""

        def __init__(self, func_name: str, chars_to_process: int = 0):
            self.func_name = func_name
            self.chars = chars_to_process
            self.start_time = 0

        def __enter__(self) -> "ProfileContext":
            self.start_time = time.perf_counter_ns()
            return self

        def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
            duration = time.perf_counter_ns() - self.start_time
            stats = _hot_path_stats.setdefault(
                self.func_name, HotPathStats(self.func_name)
            )
            stats.record_call(duration, self.chars)

    def get_hot_path_stats() -> dict[str, HotPathStats]:
        """Returns a snapshot of the collected statistics."""
        return _hot_path_stats.copy()

    def clear_hot_path_stats() -> None:
        _hot_path_stats.clear()

else:

    class ProfileContext:  # type: ignore[no-redef]
        def __init__(self, func_name: str, chars: int = 0) -> None:
            pass

        def __enter__(self) -> "ProfileContext":
            return self

        def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
            pass

    def get_hot_path_stats() -> dict[str, HotPathStats]:
        return {}

    def clear_hot_path_stats() -> None:
        pass


class PartialJSONError(ValueError):
    """
    Reports text that cannot be completed into a JSON document.

    Carries the document, the offending position and the derived line and
    column numbers, formatted the same way as json.JSONDecodeError.
    """

    def __init__(self, msg: str, doc: str = "", pos: Position = 0) -> None:
        self.msg = msg
        self.doc = doc
        self.pos = pos

        self.lineno = doc.count("\n", 0, pos) + 1 if doc else 1
        self.colno = pos - doc.rfind("\n", 0, pos) if doc else pos + 1

        super().__init__(f"{msg} at line {self.lineno}, column {self.colno}")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.msg, self.doc, self.pos)


class UnexpectedTokenError(PartialJSONError):
    """Text that is malformed rather than truncated."""


class IncompleteStringError(PartialJSONError):
    """A string literal whose closing quote is missing."""


class IncompleteNumberError(PartialJSONError):
    """A numeral without digits, or an exponent marker without digits."""


class NestingTooDeepError(PartialJSONError):
    """Containers nested deeper than the configured maximum depth."""


# Failures the enclosing container turns into a shorter result
_TRUNCATION_ERRORS = (IncompleteStringError, IncompleteNumberError)


def log_extra_token(text: str, value: JsonValue, remaining: str) -> None:
    """
    Logs text left over after the top-level value.

    Pass as ``on_extra_token`` to get a warning whenever trailing tokens are
    discarded.
    """
    logger.warning(
        "Parsed JSON with extra tokens. text: %s, data: %r, remaining: %s",
        text,
        value,
        remaining,
    )


@dataclass(frozen=True)
class ParserConfig:
    """
    Configures partial JSON parsing with immutable settings.

    ``strict`` controls truncated strings: strict mode drops them, lenient
    mode keeps the raw text after the opening quote. ``on_extra_token`` is
    told about text left over after the top-level value and ``max_depth``
    bounds container nesting.
    """

    strict: bool = True
    on_extra_token: ExtraTokenObserver | None = None
    max_depth: int = DEFAULT_MAX_DEPTH

    def __post_init__(self) -> None:
        if not isinstance(self.strict, bool):
            raise TypeError("strict must be a boolean")
        if self.on_extra_token is not None and not callable(
            self.on_extra_token
        ):
            raise TypeError("on_extra_token must be callable")
        if isinstance(self.max_depth, bool) or not isinstance(
            self.max_depth, int
        ):
            raise TypeError("max_depth must be an integer")
        if self.max_depth < 1:
            raise ValueError("max_depth must be a positive integer")


def _skip_whitespace(text: str, pos: Position) -> Position:
    length = len(text)
    while pos < length and text[pos] in WHITESPACE:
        pos += 1
    return pos


def _skip_char(text: str, pos: Position, char: str) -> Position:
    """Steps over ``char`` if it sits at ``pos``."""
    if pos < len(text) and text[pos] == char:
        return pos + 1
    return pos


def _find_string_end(text: str, start: Position) -> Position | None:
    """
    Finds the quote closing the string opened at ``start``.

    A quote is escaped only when preceded by an odd run of backslashes, so
    ``"a\\\\"`` closes and ``"a\\"`` does not. Returns None when the string
    never closes.
    """
    end = text.find('"', start + 1)
    while end != -1:
        escape = end - 1
        while escape > start and text[escape] == "\\":
            escape -= 1
        if (end - 1 - escape) % 2 == 0:
            return end
        end = text.find('"', end + 1)
    return None


def _scan_digits(text: str, pos: Position) -> tuple[Position, bool]:
    """Scans an ASCII digit run, returning the end and whether it was empty."""
    start = pos
    length = len(text)
    while pos < length and text[pos] in _DIGITS:
        pos += 1
    return pos, pos > start


def _convert_number(
    numeral: str, is_integer: bool, doc: str, pos: Position
) -> int | float:
    """Converts a scanned numeral, keeping integers that fit in 64 bits."""
    try:
        if is_integer:
            value = int(numeral)
            if _INT64_MIN <= value <= _INT64_MAX:
                return value
        number = float(numeral)
    except ValueError as e:
        raise IncompleteNumberError("Invalid number", doc, pos) from e

    if math.isinf(number):
        raise IncompleteNumberError("Number out of range", doc, pos)
    return number


def _as_text(data: str | bytes | bytearray) -> str:
    if isinstance(data, str):
        return data
    if isinstance(data, bytes | bytearray):
        return bytes(data).decode("utf-8")
    raise TypeError(
        f"the JSON text must be str, bytes or bytearray, "
        f"not {type(data).__name__}"
    )


def _decode_completed[T](json_text: str, target: type[T] | None) -> Any:
    if target is None:
        return orjson.loads(json_text)
    return TypeAdapter(target).validate_json(json_text)


class PartialJsonParser:
    """
    Completes truncated JSON text.

    Each rule takes the text and a position and returns the parsed value
    with the position after it. Truncation recovery happens in the array
    and object rules; everything else raises. The parser only holds its
    immutable configuration, so one instance can be shared across threads.
    """

    def __init__(self, strict: bool = True, **kwargs: Any) -> None:
        self.config = ParserConfig(strict=strict, **kwargs)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(strict={self.config.strict})"

    def parse_value(
        self, text: str, pos: Position, depth: int = 0
    ) -> tuple[JsonValue, Position]:
        """Dispatches on the first significant character at ``pos``."""
        pos = _skip_whitespace(text, pos)
        if pos >= len(text):
            return None, pos

        char = text[pos]
        if char == "{":
            return self.parse_object(text, pos, depth + 1)
        elif char == "[":
            return self.parse_array(text, pos, depth + 1)
        elif char == '"':
            return self.parse_string(text, pos)
        elif char in "tfn":
            return self.parse_literal(text, pos)
        elif char in _NUMBER_START:
            return self.parse_number(text, pos)
        else:
            raise UnexpectedTokenError("Expecting value", text, pos)

    def parse_literal(
        self, text: str, pos: Position
    ) -> tuple[JsonValue, Position]:
        """Matches ``true``, ``false`` or ``null`` exactly; prefixes fail."""
        if text.startswith("true", pos):
            return True, pos + 4
        elif text.startswith("false", pos):
            return False, pos + 5
        elif text.startswith("null", pos):
            return None, pos + 4
        else:
            raise UnexpectedTokenError("Invalid literal", text, pos)

    def parse_number(
        self, text: str, pos: Position
    ) -> tuple[int | float, Position]:
        """
        Parses a numeral starting at ``pos``.

        A numeral that stops before any digit, or right after its exponent
        marker, raises IncompleteNumberError; recovering from it is left to
        the enclosing container.
        """
        with ProfileContext("parse_number"):
            start = pos
            length = len(text)
            is_integer = True

            if pos < length and text[pos] == "-":
                pos += 1
            pos, has_digits = _scan_digits(text, pos)

            if pos < length and text[pos] == ".":
                is_integer = False
                pos, has_fraction = _scan_digits(text, pos + 1)
                has_digits = has_digits or has_fraction

            if not has_digits:
                raise IncompleteNumberError("Incomplete number", text, start)

            if pos < length and text[pos] in "eE":
                is_integer = False
                pos += 1
                if pos < length and text[pos] in "+-":
                    pos += 1
                pos, has_exponent = _scan_digits(text, pos)
                if not has_exponent:
                    raise IncompleteNumberError(
                        "Incomplete exponent", text, start
                    )

            number = _convert_number(text[start:pos], is_integer, text, start)
            return number, pos

    def parse_string(self, text: str, pos: Position) -> tuple[str, Position]:
        """
        Parses the string literal opened at ``pos``.

        Without a closing quote, lenient mode returns the raw rest of the
        text, escapes untouched, and strict mode raises
        IncompleteStringError.
        """
        with ProfileContext("parse_string"):
            end = _find_string_end(text, pos)
            if end is None:
                if not self.config.strict:
                    return text[pos + 1 :], len(text)
                raise IncompleteStringError(
                    "Unterminated string starting at", text, pos
                )

            try:
                value = orjson.loads(text[pos : end + 1])
            except orjson.JSONDecodeError as e:
                raise UnexpectedTokenError(
                    "Invalid string literal", text, pos
                ) from e
            return value, end + 1

    def _check_depth(self, text: str, pos: Position, depth: int) -> None:
        if depth > self.config.max_depth:
            raise NestingTooDeepError(
                f"Nesting deeper than {self.config.max_depth} levels",
                text,
                pos,
            )

    def parse_array(
        self, text: str, pos: Position, depth: int = 1
    ) -> tuple[list[JsonValue] | None, Position]:
        """
        Parses the array opened at ``pos``, stopping at truncation.

        An object cut off before its first member is dropped as the remains
        of a truncated ``{``; a closed ``{}`` is kept. An array that was
        never closed and kept no element yields None so the caller can
        treat it as an absent value.
        """
        with ProfileContext("parse_array"):
            self._check_depth(text, pos, depth)
            length = len(text)
            pos = _skip_whitespace(text, pos + 1)
            values: list[JsonValue] = []
            value: JsonValue
            closed = False
            truncated_object = False

            while pos < length:
                if text[pos] == "]":
                    pos += 1
                    closed = True
                    break

                truncated_object = False
                try:
                    if text[pos] == "{":
                        value, pos, object_closed = self._parse_members(
                            text, pos, depth + 1
                        )
                        truncated_object = not object_closed
                    else:
                        value, pos = self.parse_value(text, pos, depth)
                except _TRUNCATION_ERRORS:
                    pos = length
                    break

                values.append(value)
                pos = _skip_whitespace(text, pos)
                if pos < length and text[pos] == ",":
                    pos = _skip_whitespace(text, pos + 1)

            if truncated_object and not values[-1]:
                values.pop()

            if not values and not closed:
                return None, pos
            return values, pos

    def parse_object(
        self, text: str, pos: Position, depth: int = 1
    ) -> tuple[dict[str, JsonValue], Position]:
        """
        Parses the object opened at ``pos``, stopping at truncation.

        A member whose key is cut off is left out. A member whose value is
        missing or cut off is kept with a None value, except that lenient
        mode keeps the raw text of a cut off string value.
        """
        members, pos, _ = self._parse_members(text, pos, depth)
        return members, pos

    def _parse_members(
        self, text: str, pos: Position, depth: int
    ) -> tuple[dict[str, JsonValue], Position, bool]:
        """Object rule, also reporting whether the closing ``}`` was seen."""
        with ProfileContext("parse_object"):
            self._check_depth(text, pos, depth)
            length = len(text)
            pos = _skip_whitespace(text, pos + 1)
            members: dict[str, JsonValue] = {}

            while pos < length:
                char = text[pos]
                if char == "}":
                    return members, pos + 1, True

                lenient = not self.config.strict
                if lenient and _find_string_end(text, pos) is None:
                    # Key cut off mid-way
                    return members, length, False
                if char != '"':
                    raise UnexpectedTokenError(
                        "Expecting property name enclosed in double quotes",
                        text,
                        pos,
                    )

                try:
                    key, pos = self.parse_string(text, pos)
                except IncompleteStringError:
                    return members, length, False

                pos = _skip_whitespace(text, pos)
                if pos >= length or text[pos] == "}":
                    members[key] = None
                    return members, _skip_char(text, pos, "}"), pos < length
                if text[pos] != ":":
                    raise UnexpectedTokenError(
                        "Expecting ':' delimiter", text, pos
                    )

                pos = _skip_whitespace(text, pos + 1)
                if pos >= length or text[pos] == "}":
                    members[key] = None
                    return members, _skip_char(text, pos, "}"), pos < length

                try:
                    value, pos = self.parse_value(text, pos, depth)
                except _TRUNCATION_ERRORS:
                    members[key] = None
                    return members, length, False

                members[key] = value
                pos = _skip_whitespace(text, pos)
                if pos < length and text[pos] == ",":
                    pos = _skip_whitespace(text, pos + 1)

            return members, pos, False

    def parse(self, text: str) -> JsonValue:
        """
        Parses a possibly-truncated document into a value.

        The document must open with ``{`` or ``[``. Text that already looks
        closed is first handed to a strict decoder; only if that fails is the
        recovering parser run.
        """
        if not isinstance(text, str):
            raise TypeError(
                f"the JSON text must be str, not {type(text).__name__}"
            )

        with ProfileContext("parse", len(text)):
            start = _skip_whitespace(text, 0)
            if start >= len(text) or text[start] not in "{[":
                raise UnexpectedTokenError("Expecting '{' or '['", text, start)

            if text.rstrip(WHITESPACE).endswith(("}", "]")):
                try:
                    return orjson.loads(text)
                except orjson.JSONDecodeError:
                    logger.debug("Closed-looking text is not valid JSON")

            value, pos = self.parse_value(text, start)
            remaining = text[pos:]
            observer = self.config.on_extra_token
            if observer is not None and remaining.strip(WHITESPACE):
                observer(text, value, remaining)
            return value

    def ensure_json(self, text: str) -> str:
        """Returns a complete JSON document for ``text`` (precise path)."""
        return orjson.dumps(self.parse(text)).decode()

    def fast_ensure_json(self, text: str) -> str:
        """
        Returns a complete JSON document for ``text`` via the fast path.

        Scans the text once for unmatched ``{``/``[`` outside strings, runs
        the precise path on the innermost one only and appends the closers
        of the others. Valid balanced text is returned unchanged. Whenever
        the result is not valid JSON, because the part left unparsed was
        malformed, the precise path handles the whole text instead.
        """
        if not isinstance(text, str):
            raise TypeError(
                f"the JSON text must be str, not {type(text).__name__}"
            )

        with ProfileContext("fast_ensure_json", len(text)):
            length = len(text)
            pos = _skip_whitespace(text, 0)
            if pos >= length or text[pos] not in "{[":
                raise UnexpectedTokenError("Expecting '{' or '['", text, pos)

            stack = DelimiterStack(text)
            while pos < length:
                char = text[pos]
                if char == '"':
                    end = _find_string_end(text, pos)
                    if end is None:
                        break
                    pos = end + 1
                    continue

                if char in "{[":
                    stack.push(pos)
                elif char in "}]" and not stack.pop_matching(char):
                    raise UnexpectedTokenError(
                        "Mismatched closing delimiter", text, pos
                    )
                pos += 1

            completed = text
            if stack:
                completed = self._complete_innermost(text, stack)

            try:
                orjson.loads(completed)
            except orjson.JSONDecodeError:
                logger.debug(
                    "Fast completion is not valid JSON, reparsing %d chars",
                    length,
                )
                return self.ensure_json(text)
            return completed

    def _complete_innermost(self, text: str, stack: DelimiterStack) -> str:
        """Splices the completed innermost container and closes the rest."""
        innermost = stack.pop()
        try:
            fragment = self.ensure_json(text[innermost:])
        except PartialJSONError as e:
            raise type(e)(e.msg, text, innermost + e.pos) from e

        logger.debug(
            "Completed fragment at %d, closing %d outer containers",
            innermost,
            len(stack),
        )
        head = text[:innermost]
        if text[innermost] == "{" and fragment == "{}":
            return close_truncated_object(head, stack.closers())
        return head + fragment + stack.closers()

    def decode[T](
        self, data: str | bytes, target: type[T] | None = None
    ) -> T | Any:
        """
        Completes ``data`` with the precise path and decodes it.

        Without ``target`` the plain value is returned; otherwise the
        document is validated into ``target`` (a pydantic model, dataclass,
        TypedDict or any type pydantic accepts).
        """
        return _decode_completed(self.ensure_json(_as_text(data)), target)

    def fast_decode[T](
        self, data: str | bytes, target: type[T] | None = None
    ) -> T | Any:
        """Completes ``data`` with the fast path and decodes it."""
        return _decode_completed(self.fast_ensure_json(_as_text(data)), target)


def ensure_json(s: str, **kwargs: Any) -> str:
    """
    Completes a truncated JSON document via the precise path.

    Keyword arguments configure the parser, see ParserConfig.
    """
    return PartialJsonParser(**kwargs).ensure_json(s)


def fast_ensure_json(s: str, **kwargs: Any) -> str:
    """Completes a truncated JSON document via the fast path."""
    return PartialJsonParser(**kwargs).fast_ensure_json(s)


def loads[T](
    s: str | bytes, target: type[T] | None = None, **kwargs: Any
) -> T | Any:
    """
    Decodes a truncated JSON document into Python objects.

    Returns plain values, or an instance of ``target`` when one is given.
    """
    return PartialJsonParser(**kwargs).decode(s, target)


def fast_loads[T](
    s: str | bytes, target: type[T] | None = None, **kwargs: Any
) -> T | Any:
    """Decodes a truncated JSON document using the fast path."""
    return PartialJsonParser(**kwargs).fast_decode(s, target)


def load[T](
    fp: IO[str] | IO[bytes],
    target: type[T] | None = None,
    *,
    fast: bool = False,
    **kwargs: Any,
) -> T | Any:
    """
    Decodes whatever has been written to a file-like object so far.
    """
    if not hasattr(fp, "read"):
        raise TypeError("fp must have a read() method")

    parser = PartialJsonParser(**kwargs)
    data = fp.read()
    if fast:
        return parser.fast_decode(data, target)
    return parser.decode(data, target)


__all__ = [
    "DEFAULT_MAX_DEPTH",
    "ExtraTokenObserver",
    "HotPathStats",
    "IncompleteNumberError",
    "IncompleteStringError",
    "JsonValue",
    "NestingTooDeepError",
    "ParserConfig",
    "PartialJSONError",
    "PartialJsonParser",
    "UnexpectedTokenError",
    "clear_hot_path_stats",
    "ensure_json",
    "fast_ensure_json",
    "fast_loads",
    "get_hot_path_stats",
    "load",
    "loads",
    "log_extra_token",
]
