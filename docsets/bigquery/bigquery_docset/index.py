"""The Dash search index (``docSet.dsidx``)."""

import logging
import sqlite3
from pathlib import Path

from .config import INDEX_RELPATH

log = logging.getLogger(__name__)

COLUMNS = ("name", "type", "path")


class SearchIndex:
    """A ``searchIndex`` table with one row per unique (name, type, path)."""

    def __init__(self, db_path, create=False):
        self.db_path = Path(db_path)
        self.conn = sqlite3.connect(str(self.db_path))
        if create:
            self._create()

    def _create(self):
        self.conn.execute("DROP TABLE IF EXISTS searchIndex")
        self.conn.execute(
            """
            CREATE TABLE searchIndex (
                id   INTEGER PRIMARY KEY,
                name TEXT,
                type TEXT,
                path TEXT
            )
            """
        )
        self.conn.execute("CREATE UNIQUE INDEX anchor ON searchIndex (name, type, path)")
        self.conn.commit()
        log.debug("Created search index at %s", self.db_path)

    def insert(self, name, entry_type, path):
        """Add a row; an identical existing row makes this a no-op."""
        self.conn.execute(
            "INSERT OR IGNORE INTO searchIndex(name, type, path) VALUES (?, ?, ?)",
            (name, entry_type, path),
        )

    def count(self, **criteria):
        """Count rows whose columns equal every value in *criteria*."""
        for column in criteria:
            if column not in COLUMNS:
                raise ValueError(f"Unknown searchIndex column: {column}")
        sql = "SELECT COUNT(*) FROM searchIndex"
        if criteria:
            sql += " WHERE " + " AND ".join(f"{column} = ?" for column in criteria)
        (count,) = self.conn.execute(sql, tuple(criteria.values())).fetchone()
        return count

    def rows(self):
        """Return every (name, type, path) row, sorted."""
        return self.conn.execute(
            "SELECT name, type, path FROM searchIndex ORDER BY name, type, path"
        ).fetchall()

    def dump(self, out):
        """Write the sorted index to *out* as tab-separated lines."""
        for row in self.rows():
            out.write("\t".join(row) + "\n")
        out.flush()

    def commit(self):
        self.conn.commit()

    def close(self):
        self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        try:
            if exc_type is None:
                self.conn.commit()
        finally:
            self.conn.close()
        return False


def dump_index(docset, out):
    """Dump the index of *docset* (a ``.docset`` directory) to *out*."""
    db_path = Path(docset) / INDEX_RELPATH
    if not db_path.is_file():
        raise FileNotFoundError(f"No index found at {db_path}")
    with SearchIndex(db_path) as index:
        index.dump(out)
