"""
Field codecs: two-way text <-> value converters for store columns.

**Conceptual**: Every column of a store file is bound to exactly one codec.
A codec is a pair of pure functions, `encode(value) -> str` and
`decode(text) -> value`, and both are *total*:

  - `encode` never raises and never emits the field separator (",") or a line
    terminator, so a record always serialises to exactly one line with the
    right number of fields.
  - `decode` never raises. Malformed text yields the codec's documented
    fallback, and decoding of the remaining fields of the line carries on.

Only structural problems (wrong field count, I/O errors) are errors; see
schemas.py and repository.py.

**Lossy normalisation**: free text is sanitised on encode (comma -> semicolon,
newline -> space). After a round trip a semicolon can no longer be told apart
from a substituted comma. Callers that need the exact text must not put
commas or newlines in it.

**Canonical list encodings**: scalar lists are joined on a separator chosen
per field (";" or "|"). Structured lists always use the `value~timestamp`
tuple form joined on "|". The legacy JSON-per-element encoding is not read.
"""

import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from hackstore.utils.logging_config import get_logger
from hackstore.utils.time import Clock, RealClock

logger = get_logger(__name__)

FIELD_SEPARATOR = ","
LIST_SEPARATOR = ";"
STRUCTURED_SEPARATOR = "|"
PAIR_SEPARATOR = "~"

# Characters that may never appear inside an encoded field
_SANITIZE_MAP = {
    FIELD_SEPARATOR: ";",
    "\n": " ",
    "\r": " ",
}


def sanitize(text: str) -> str:
    """
    Make free text safe to embed in a store line.

    Replaces the field separator with a semicolon and line terminators with
    spaces. The substitution is lossy and cannot be undone on decode.

    Example:
        >>> sanitize("fast, cheap\\ngood")
        'fast; cheap good'
    """
    for unsafe, replacement in _SANITIZE_MAP.items():
        text = text.replace(unsafe, replacement)
    return text


class Codec(Protocol):
    """Protocol every field codec implements."""

    def encode(self, value: Any) -> str:
        ...

    def decode(self, text: str) -> Any:
        ...


@dataclass(frozen=True)
class TextCodec:
    """
    Free text (NullableString).

    Encoding:
      - None -> ""
      - any other value -> str(value), sanitised

    Decoding:
      - "" -> None when `nullable` (the default), "" otherwise
      - any other text -> itself

    Non-nullable text is used for names and list items, where an empty
    string is a value in its own right.
    """
    nullable: bool = True

    def encode(self, value: Any) -> str:
        if value is None:
            return ""
        return sanitize(value if isinstance(value, str) else str(value))

    def decode(self, text: str) -> str | None:
        if text == "" and self.nullable:
            return None
        return text


@dataclass(frozen=True)
class EnumCodec:
    """
    Closed symbolic value (Enum/Atom).

    Encodes a member to its string value and decodes by value lookup. Unknown
    or empty text decodes to `default`: this is a policy, not an error.
    Encoding something that is not a member (e.g. a stray string) stores the
    matching member if the string is a valid value, else the default.
    """
    enum_type: type[enum.Enum]
    default: enum.Enum

    def __post_init__(self):
        if not isinstance(self.default, self.enum_type):
            raise TypeError(
                f"Default {self.default!r} is not a member of {self.enum_type.__name__}"
            )

    def encode(self, value: Any) -> str:
        if isinstance(value, self.enum_type):
            return sanitize(str(value.value))
        return sanitize(str(self._lookup(value).value))

    def decode(self, text: str) -> enum.Enum:
        return self._lookup(text)

    def _lookup(self, raw: Any) -> enum.Enum:
        try:
            return self.enum_type(raw)
        except (TypeError, ValueError):
            if raw not in (None, ""):
                logger.debug(
                    "Unknown %s value %r, using default %s",
                    self.enum_type.__name__, raw, self.default.value,
                )
            return self.default


class DateTimeFallback(enum.Enum):
    """What a DateTimeCodec yields for empty or unparseable text."""
    NONE = "none"
    NOW = "now"


@dataclass(frozen=True)
class DateTimeCodec:
    """
    ISO-8601 timestamp.

    Encodes a datetime with `isoformat()` and None as "". Decoding parses
    ISO-8601, a trailing "Z" for UTC included. Empty or malformed text falls
    back according to `fallback`:

      - DateTimeFallback.NONE: yields None (optional timestamps such as a
        participant's last connection).
      - DateTimeFallback.NOW: yields `clock.now()` (creation dates that the
        legacy files always expected to be present).

    Every schema field declares its policy explicitly.
    """
    fallback: DateTimeFallback = DateTimeFallback.NONE
    clock: Clock = field(default_factory=RealClock, compare=False, repr=False)

    def encode(self, value: Any) -> str:
        if isinstance(value, datetime):
            return value.isoformat()
        if value is not None:
            logger.debug("Cannot encode %r as a timestamp, storing empty", value)
        return ""

    def decode(self, text: str) -> datetime | None:
        if text:
            try:
                return datetime.fromisoformat(text)
            except ValueError:
                logger.debug("Malformed timestamp %r, using %s fallback", text, self.fallback.value)
        if self.fallback is DateTimeFallback.NOW:
            return self.clock.now()
        return None


_OPTIONAL_TIMESTAMP = DateTimeCodec(DateTimeFallback.NONE)


@dataclass(frozen=True)
class BoolCodec:
    """
    Boolean: "true"/"false".

    Only the text "true" (any case) decodes to True; anything else,
    including "", decodes to False.
    """

    def encode(self, value: Any) -> str:
        return "true" if value is True else "false"

    def decode(self, text: str) -> bool:
        return text.strip().lower() == "true"


@dataclass(frozen=True)
class IntCodec:
    """
    Integer with an explicit decode default.

    Values that cannot be converted with int() (None, junk text, non-finite
    floats) encode as `default`, so a stored integer column always holds
    digits. Text that cannot be parsed decodes to `default`.
    """
    default: int = 0

    def encode(self, value: Any) -> str:
        if isinstance(value, bool) or value is None:
            return str(self.default)
        try:
            return str(int(value))
        except (TypeError, ValueError, OverflowError):
            logger.debug("Cannot encode %r as an integer, storing default %d", value, self.default)
            return str(self.default)

    def decode(self, text: str) -> int:
        try:
            return int(text)
        except ValueError:
            if text:
                logger.debug("Malformed integer %r, using default %d", text, self.default)
            return self.default


@dataclass(frozen=True)
class ListCodec:
    """
    DelimitedList<T>: a scalar codec applied to every element.

    Elements are joined on `separator`, which each field declares (";" for
    most id lists, "|" for project progress and feedback references). Any
    occurrence of the separator inside an encoded element is replaced by a
    space so the element boundaries survive.

    Edge cases:
      - None and [] both encode to "", and "" decodes to [].
      - [""] also encodes to "" and therefore reads back as [].
      - A bare string is stored as a one-element list.
    """
    item: Codec = field(default_factory=lambda: TextCodec(nullable=False))
    separator: str = LIST_SEPARATOR

    def __post_init__(self):
        if len(self.separator) != 1 or self.separator in _SANITIZE_MAP:
            raise ValueError(f"Invalid list separator: {self.separator!r}")

    def encode(self, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, str) or not isinstance(value, Iterable):
            value = [value]
        return self.separator.join(
            self.item.encode(element).replace(self.separator, " ") for element in value
        )

    def decode(self, text: str) -> list:
        if text == "":
            return []
        return [self.item.decode(part) for part in text.split(self.separator)]


@dataclass(frozen=True)
class StructuredListCodec:
    """
    StructuredList: small {value, timestamp} records as `value~timestamp`.

    Each element is a mapping with `value_key` and `time_key`. Elements are
    joined on "|" and the two parts on "~". Value text is sanitised and loses
    any "|" or "~" (replaced by spaces). Timestamps decode with the NONE
    fallback, so a missing or malformed timestamp reads back as None.

    Non-mapping elements are stored as a value with no timestamp. An empty or
    None value reads back as None, as with TextCodec.

    Example (team history):
        [{"detail": "created", "timestamp": datetime(2025, 11, 1, tzinfo=utc)}]
        <-> "created~2025-11-01T00:00:00+00:00"
    """
    value_key: str = "detail"
    time_key: str = "timestamp"
    separator: str = STRUCTURED_SEPARATOR
    pair_separator: str = PAIR_SEPARATOR

    def __post_init__(self):
        for sep in (self.separator, self.pair_separator):
            if len(sep) != 1 or sep in _SANITIZE_MAP:
                raise ValueError(f"Invalid structured list separator: {sep!r}")
        if self.separator == self.pair_separator:
            raise ValueError("Element and pair separators must differ")

    def encode(self, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, (str, Mapping)) or not isinstance(value, Iterable):
            value = [value]
        return self.separator.join(self._encode_entry(entry) for entry in value)

    def decode(self, text: str) -> list[dict[str, Any]]:
        if text == "":
            return []
        entries = []
        for piece in text.split(self.separator):
            raw_value, _, raw_time = piece.partition(self.pair_separator)
            entries.append({
                self.value_key: raw_value or None,
                self.time_key: _OPTIONAL_TIMESTAMP.decode(raw_time),
            })
        return entries

    def _encode_entry(self, entry: Any) -> str:
        if isinstance(entry, Mapping):
            raw_value = entry.get(self.value_key)
            timestamp = entry.get(self.time_key)
        else:
            raw_value, timestamp = entry, None

        text = "" if raw_value is None else sanitize(str(raw_value))
        for sep in (self.separator, self.pair_separator):
            text = text.replace(sep, " ")
        return f"{text}{self.pair_separator}{_OPTIONAL_TIMESTAMP.encode(timestamp)}"
