"""
Schema descriptors, line (de)serialisation, and store errors.

**Conceptual**: A Schema is the "data contract" for one entity type: the
ordered list of fields, the codec bound to each, which field is the unique
key, and the file the records live in. The header line of a store file is
derived from it (the comma-joined field names), so the header on disk and
the field order used for reading and writing can never drift apart.

**Schema philosophy**:
  - Field order is significant: it is the column order on disk.
  - Exactly one field is the key. Uniqueness is enforced by the repository
    on every write, not by the file format.
  - A Schema never repairs data. A line whose field count is wrong raises
    ParseError carrying the offending line, and the caller decides.

**Record**: a plain `dict` from field name to decoded value. Dicts keep
insertion order, so a decoded record lists its fields in schema order.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from hackstore.data.codecs import FIELD_SEPARATOR, Codec

Record = dict[str, Any]


class StoreError(Exception):
    """
    Base class for every error raised by the store.

    **Usage**: catch this in bootstrap or service code to report any
    persistence failure; catch a subclass to react to one condition.
    Plain OSError from the filesystem is *not* wrapped and propagates as is.
    """
    pass


class SchemaDefinitionError(StoreError, ValueError):
    """
    Raised when a Schema declaration is invalid (duplicate field names, no key
    or several keys, separator inside a name), or when a record handed to the
    repository has an empty key.
    """
    pass


class ParseError(StoreError, ValueError):
    """
    Raised when a store line does not split into the schema's field count.

    This is the MalformedRow condition. It carries enough context to locate
    and fix the row by hand.

    Attributes:
        line: The offending line, without its terminator.
        line_number: 1-based line number in the file (header is line 1),
                     or None when the line did not come from a file.
        path: The store file, or None.
        expected: Field count declared by the schema.
        found: Field count actually present in the line.
    """

    def __init__(
        self,
        message: str,
        *,
        line: str,
        expected: int,
        found: int,
        line_number: int | None = None,
        path: Path | None = None,
    ):
        super().__init__(message)
        self.line = line
        self.line_number = line_number
        self.path = path
        self.expected = expected
        self.found = found


class RecordNotFoundError(StoreError, KeyError):
    """
    Raised by Repository.delete when no record has the requested key.

    Attributes:
        entity: Schema entity name (e.g. "team").
        key: The key that was looked up.
    """

    def __init__(self, entity: str, key: Any):
        super().__init__(f"No {entity} with key {key!r}")
        self.entity = entity
        self.key = key

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


@dataclass(frozen=True)
class Field:
    """One column: its name, its codec, and whether it is the unique key."""
    name: str
    codec: Codec
    is_key: bool = False


@dataclass(frozen=True)
class Schema:
    """
    Immutable descriptor of one entity type's store file.

    Attributes:
        entity: Short entity name used in messages and logs (e.g. "team").
        filename: File name under the data directory (e.g. "teams.csv").
        fields: Ordered fields. Exactly one must have is_key=True.

    Raises:
        SchemaDefinitionError: On construction, if the declaration is invalid.

    Example:
        >>> schema = Schema("tag", "tags.csv", (
        ...     Field("id", TextCodec(nullable=False), is_key=True),
        ...     Field("label", TextCodec()),
        ... ))
        >>> schema.header
        'id,label'
    """
    entity: str
    filename: str
    fields: tuple[Field, ...]

    def __post_init__(self):
        # Accept any sequence of fields but store a tuple so the schema stays hashable
        object.__setattr__(self, "fields", tuple(self.fields))

        ctx = f"Schema '{self.entity}': "
        if not self.fields:
            raise SchemaDefinitionError(f"{ctx}at least one field is required.")

        if not self.filename or "/" in self.filename or "\\" in self.filename:
            raise SchemaDefinitionError(
                f"{ctx}filename must be a bare file name, got {self.filename!r}."
            )

        names = [f.name for f in self.fields]
        for name in names:
            if not name or FIELD_SEPARATOR in name or "\n" in name or "\r" in name:
                raise SchemaDefinitionError(f"{ctx}invalid field name {name!r}.")
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise SchemaDefinitionError(f"{ctx}duplicate field names: {duplicates}.")

        keys = [f.name for f in self.fields if f.is_key]
        if len(keys) != 1:
            raise SchemaDefinitionError(
                f"{ctx}exactly one key field is required, found {len(keys)}: {keys}."
            )

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    @property
    def header(self) -> str:
        """The canonical header line (without terminator)."""
        return FIELD_SEPARATOR.join(self.field_names)

    @property
    def key_field(self) -> Field:
        return next(f for f in self.fields if f.is_key)

    def field(self, name: str) -> Field:
        """Look up a field by name, raising SchemaDefinitionError if absent."""
        for f in self.fields:
            if f.name == name:
                return f
        raise SchemaDefinitionError(
            f"Schema '{self.entity}' has no field {name!r}. "
            f"Available fields: {self.field_names}."
        )

    def encode_key(self, key: Any) -> str:
        """Encode a bare key value the way it appears on disk."""
        return self.key_field.codec.encode(key)

    def key_of(self, record: Record) -> str:
        """Encoded key of a record (empty string when the key is missing)."""
        return self.encode_key(record.get(self.key_field.name))

    def encode_record(self, record: Record) -> str:
        """
        Serialise a record to one line (without terminator).

        Missing fields encode as their codec's encoding of None; fields not
        declared by the schema are ignored.
        """
        return FIELD_SEPARATOR.join(
            f.codec.encode(record.get(f.name)) for f in self.fields
        )

    def split_line(
        self,
        line: str,
        *,
        line_number: int | None = None,
        path: Path | None = None,
    ) -> list[str]:
        """
        Split a line into exactly len(fields) raw parts.

        Raises:
            ParseError: If the field count does not match the schema.
        """
        line = line.rstrip("\r\n")
        parts = line.split(FIELD_SEPARATOR)
        if len(parts) != len(self.fields):
            where = ""
            if path is not None:
                where = f"{path}"
                if line_number is not None:
                    where += f":{line_number}"
                where += ": "
            raise ParseError(
                f"{where}{self.entity} row has {len(parts)} fields, "
                f"expected {len(self.fields)} ({self.header}). Row: {line!r}",
                line=line,
                line_number=line_number,
                path=path,
                expected=len(self.fields),
                found=len(parts),
            )
        return parts

    def decode_line(
        self,
        line: str,
        *,
        line_number: int | None = None,
        path: Path | None = None,
    ) -> Record:
        """
        Decode one line into a Record, field by field.

        Codec fallbacks are local to each field; only a field-count mismatch
        is an error.

        Raises:
            ParseError: If the field count does not match the schema.
        """
        parts = self.split_line(line, line_number=line_number, path=path)
        return {f.name: f.codec.decode(part) for f, part in zip(self.fields, parts)}
