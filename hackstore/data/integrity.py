"""
Startup integrity check for store files.

**Conceptual**: Before any service touches the store, every known entity file
must exist and start with the header its schema derives. The IntegrityManager
runs once at process start and makes that true:

  - Missing file: created with exactly the header line.
  - Wrong first line: line 1 is replaced with the header; every other line
    is left byte-identical.

**What it deliberately does not do**: it never looks past line 1. If a schema
gained or lost a field, existing rows keep their old field count and will
raise ParseError on the next read even though the header now looks right.
Migrating rows is a separate, explicit step.
"""

import enum
from collections.abc import Iterable
from pathlib import Path

from hackstore.data.entities import ALL_SCHEMAS
from hackstore.data.io import read_first_line, replace_first_line, write_lines_atomic
from hackstore.data.schemas import Schema
from hackstore.utils.logging_config import get_logger

logger = get_logger(__name__)


class IntegrityAction(enum.Enum):
    """Outcome of ensuring one store file."""
    OK = "ok"
    CREATED = "created"
    REPAIRED = "repaired"


class IntegrityManager:
    """
    Creates missing store files and repairs mismatched header lines.

    Args:
        data_dir: Directory holding the store files.
        schemas: Schemas to manage. Defaults to every hackathon entity.
    """

    def __init__(self, data_dir: Path | str, schemas: Iterable[Schema] = ALL_SCHEMAS):
        self.data_dir = Path(data_dir)
        self.schemas = tuple(schemas)

    def path_for(self, schema: Schema) -> Path:
        return self.data_dir / schema.filename

    def check(self, schema: Schema) -> bool:
        """
        Read-only check: does the file exist with the schema's header?

        Only the first line is read.
        """
        return read_first_line(self.path_for(schema)) == schema.header

    def ensure(self, schema: Schema) -> IntegrityAction:
        """
        Create or repair one store file.

        Returns:
            IntegrityAction.CREATED if the file was missing,
            IntegrityAction.REPAIRED if its first line was replaced,
            IntegrityAction.OK if nothing had to change.

        Raises:
            OSError: If the file cannot be created or rewritten.
        """
        path = self.path_for(schema)
        first_line = read_first_line(path)

        if first_line is None:
            write_lines_atomic(path, [schema.header])
            logger.info("Created missing store file %s", path)
            return IntegrityAction.CREATED

        if first_line != schema.header:
            replace_first_line(path, schema.header)
            logger.info(
                "Repaired header of %s (was %r, now %r)", path, first_line, schema.header
            )
            return IntegrityAction.REPAIRED

        return IntegrityAction.OK

    def ensure_all(self) -> dict[str, IntegrityAction]:
        """
        Run ensure() over every managed schema.

        Returns:
            Dict mapping entity name to the action taken, in schema order.
        """
        self.data_dir.mkdir(parents=True, exist_ok=True)
        results = {schema.entity: self.ensure(schema) for schema in self.schemas}

        changed = sum(1 for action in results.values() if action is not IntegrityAction.OK)
        logger.info(
            "Store integrity verified in %s: %d files, %d created or repaired",
            self.data_dir, len(results), changed,
        )
        return results
