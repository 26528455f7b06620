"""
Generic row store used for bookings, jobs and the iCal event ledger.

Rows are plain dicts. Subclasses only decide where a table's rows live
by implementing _load and _save; filtering, id assignment and upserts
are shared.
"""

import copy
import uuid
from typing import Dict, Iterable, List, Optional

from cleannami.exceptions import StoreError


def _matches(row: dict, filters: dict) -> bool:
    return all(row.get(k) == v for k, v in filters.items())


class RowStore:

    def _load(self, table: str) -> List[dict]:
        raise NotImplementedError

    def _save(self, table: str, rows: List[dict]) -> None:
        raise NotImplementedError

    def select(self, table: str, **filters) -> List[dict]:
        return [copy.deepcopy(r) for r in self._load(table) if _matches(r, filters)]

    def get(self, table: str, **filters) -> Optional[dict]:
        rows = self.select(table, **filters)
        return rows[0] if rows else None

    def insert(self, table: str, row: dict) -> dict:
        """Appends a row, assigning an id if it has none. Returns the stored row."""
        rows = self._load(table)
        new_row = copy.deepcopy(row)
        new_row.setdefault("id", str(uuid.uuid4()))
        if any(r.get("id") == new_row["id"] for r in rows):
            raise StoreError(f"Duplicate id {new_row['id']} in {table}")
        rows.append(new_row)
        self._save(table, rows)
        return copy.deepcopy(new_row)

    def update(self, table: str, values: dict, **filters) -> int:
        """Updates matching rows in place. Returns how many rows changed."""
        rows = self._load(table)
        count = 0
        for r in rows:
            if _matches(r, filters):
                r.update(copy.deepcopy(values))
                count += 1
        if count:
            self._save(table, rows)
        return count

    def upsert(self, table: str, row: dict, key: Iterable[str]) -> dict:
        """
        Inserts `row`, or merges it into the existing row with the same
        values for the `key` fields.
        """
        key_filter = {k: row[k] for k in key}
        rows = self._load(table)
        for r in rows:
            if _matches(r, key_filter):
                r.update(copy.deepcopy(row))
                self._save(table, rows)
                return copy.deepcopy(r)
        return self.insert(table, row)


class InMemoryRowStore(RowStore):
    """Process-local store for tests and local runs."""

    def __init__(self, tables: Optional[Dict[str, List[dict]]] = None):
        self._tables = copy.deepcopy(tables) if tables else {}

    def _load(self, table: str) -> List[dict]:
        return self._tables.setdefault(table, [])

    def _save(self, table: str, rows: List[dict]) -> None:
        self._tables[table] = rows
