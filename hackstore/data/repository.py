"""
Generic flat-file repository over entity schemas.

**Conceptual**: One Repository serves every entity type. It is constructed
with the data directory and each operation takes the Schema describing the
entity, so there is no per-entity store class and no module-level path.

**Storage model**:
  - Line 1 of a store file is the header and is always skipped on read.
  - Every other non-blank line is one record, decoded field by field.
  - Reads always go to disk. There is no cache carried between calls.
  - Every write (upsert/delete) rewrites the whole file atomically.

**Semantics worth knowing**:
  - upsert is last-write-wins: rows with the same key are dropped and the new
    record is appended at the end. No merge, no optimistic concurrency check.
  - Keys are compared in their encoded (on-disk) form, so a key with a comma
    matches its sanitised self.
  - A malformed row aborts list_all (and therefore every write, which reads
    first) with ParseError. Pass skip_malformed=True to a read to log and skip
    instead; writes always read strictly.
  - There is no locking. Two processes upserting the same entity type race,
    and the slower rewrite silently discards the other's change.

**Usage**:
    repo = Repository(settings.store.data_dir)
    repo.upsert(TEAM, {"id": "T1", "name": "Rocket", "participants": ["u1", "u2"]})
    repo.find_by_key(TEAM, "T1")["participants"]  # ["u1", "u2"]
"""

from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pandas as pd

from hackstore.data.io import iter_raw_lines, write_lines_atomic
from hackstore.data.schemas import (
    ParseError,
    Record,
    RecordNotFoundError,
    Schema,
    SchemaDefinitionError,
)
from hackstore.utils.logging_config import get_logger

logger = get_logger(__name__)


class Repository:
    """
    CRUD over store files in one data directory.

    Args:
        data_dir: Directory holding the store files. Created on first write.
    """

    def __init__(self, data_dir: Path | str):
        self.data_dir = Path(data_dir)

    def path_for(self, schema: Schema) -> Path:
        """Path of the store file for an entity type."""
        return self.data_dir / schema.filename

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def iter_records(self, schema: Schema, *, skip_malformed: bool = False) -> Iterator[Record]:
        """
        Lazily decode the records of a store file, in file order.

        Yields nothing if the file does not exist. Each call re-reads the
        file from disk.

        Args:
            schema: Entity schema.
            skip_malformed: If False (default), a malformed row raises
                            ParseError and stops iteration. If True, the row
                            is logged at WARNING level and skipped.

        Raises:
            ParseError: On a row with the wrong field count (unless skipped).
            OSError: If the file exists but cannot be read.
        """
        path = self.path_for(schema)

        for line_number, raw in enumerate(iter_raw_lines(path), start=1):
            # Line 1 is the header, whatever it says
            if line_number == 1:
                continue

            line = raw.rstrip("\r\n")
            if not line.strip():
                continue

            try:
                record = schema.decode_line(line, line_number=line_number, path=path)
            except ParseError as e:
                if not skip_malformed:
                    raise
                logger.warning("Skipping malformed %s row: %s", schema.entity, e)
                continue

            yield record

    def list_all(self, schema: Schema, *, skip_malformed: bool = False) -> list[Record]:
        """
        Return every record of an entity type, in file order.

        A missing file is an empty dataset, not an error.

        Raises:
            ParseError: On a malformed row, unless skip_malformed=True.
        """
        return list(self.iter_records(schema, skip_malformed=skip_malformed))

    def find_by_key(self, schema: Schema, key: Any) -> Record | None:
        """
        Return the record whose key equals `key`, or None.

        Linear scan over list_all(); O(n) per call.
        """
        wanted = schema.encode_key(key)
        for record in self.list_all(schema):
            if schema.key_of(record) == wanted:
                return record
        return None

    def filter_by(self, schema: Schema, field_name: str, value: Any) -> list[Record]:
        """
        Return every record whose `field_name` equals `value`.

        Values are compared in encoded form using the field's codec, so
        e.g. an enum member and its string value match the same rows.

        Raises:
            SchemaDefinitionError: If the schema has no such field.

        Example:
            >>> repo.filter_by(FEEDBACK, "project_id", "P1")  # feedback on P1
        """
        codec = schema.field(field_name).codec
        wanted = codec.encode(value)
        return [
            record for record in self.list_all(schema)
            if codec.encode(record.get(field_name)) == wanted
        ]

    def find_first(self, schema: Schema, field_name: str, value: Any) -> Record | None:
        """Return the first record whose `field_name` equals `value`, or None."""
        matches = self.filter_by(schema, field_name, value)
        return matches[0] if matches else None

    def count(self, schema: Schema) -> int:
        return len(self.list_all(schema))

    def to_dataframe(self, schema: Schema, *, skip_malformed: bool = False) -> pd.DataFrame:
        """
        Load an entity type into a DataFrame, one column per schema field.

        Cells hold decoded values (enum members, datetimes, lists). A missing
        file yields an empty DataFrame that still has every column.
        """
        records = self.list_all(schema, skip_malformed=skip_malformed)
        return pd.DataFrame.from_records(records, columns=schema.field_names)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def upsert(self, schema: Schema, record: Record) -> Record:
        """
        Insert a record, or replace the existing one with the same key.

        Loads every record, drops those with the new record's key, appends
        the new record and rewrites the whole file.

        Returns:
            The record as it reads back from disk: free text sanitised, fields
            missing from `record` filled with their decoded defaults, fields
            unknown to the schema dropped.

        Raises:
            SchemaDefinitionError: If the record's key is missing or empty.
            ParseError: If the existing file holds a malformed row.
        """
        key = schema.key_of(record)
        if key == "":
            raise SchemaDefinitionError(
                f"Cannot upsert {schema.entity} without a value for key field "
                f"'{schema.key_field.name}'."
            )

        records = [r for r in self.list_all(schema) if schema.key_of(r) != key]
        line = schema.encode_record(record)
        records.append(record)

        self._rewrite(schema, records)
        logger.debug("Upserted %s %r into %s", schema.entity, key, self.path_for(schema))
        return schema.decode_line(line)

    def delete(self, schema: Schema, key: Any) -> None:
        """
        Remove the record with the given key and rewrite the file.

        Raises:
            RecordNotFoundError: If no record has that key (including when the
                                 file does not exist). The file is untouched.
            ParseError: If the existing file holds a malformed row.
        """
        wanted = schema.encode_key(key)
        records = self.list_all(schema)
        remaining = [r for r in records if schema.key_of(r) != wanted]

        if len(remaining) == len(records):
            raise RecordNotFoundError(schema.entity, key)

        self._rewrite(schema, remaining)
        logger.debug("Deleted %s %r from %s", schema.entity, wanted, self.path_for(schema))

    def _rewrite(self, schema: Schema, records: list[Record]) -> None:
        lines = [schema.header]
        lines.extend(schema.encode_record(r) for r in records)
        write_lines_atomic(self.path_for(schema), lines)
