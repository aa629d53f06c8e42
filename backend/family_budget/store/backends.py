"""
Persistence backends for the record store.

A backend mirrors the store's in-memory tables. The store is the source of
truth while the process runs; backends only load at startup and receive
every mutation afterwards. Write failures are logged and swallowed, so disk
and memory can diverge until the next successful write.
"""

import json
from pathlib import Path
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError

from ..database import open_database, make_session_factory, session_scope
from ..logging import get_logger
from ..models import Category, Payment, Item

logger = get_logger(__name__)


class RecordBackend(Protocol):
    """Storage for one list of records per table."""

    def load_all(self, table: str) -> list[dict]: ...

    def append(self, table: str, record: dict) -> None: ...

    def replace(self, table: str, record: dict) -> None: ...

    def delete(self, table: str, ids: list[int]) -> None: ...

    def reset(self, table: str, records: list[dict]) -> None:
        """Replace the cached rows of a table without writing."""
        ...

    def close(self) -> None: ...


class JsonFileBackend:
    """
    One pretty-printed JSON array per table, e.g. data/payments.json.

    Every mutation rewrites the whole file of the affected table. There is
    no transaction across tables.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._tables: dict[str, list[dict]] = {}

    def path_for(self, table: str) -> Path:
        return self.data_dir / f"{table}.json"

    def load_all(self, table: str) -> list[dict]:
        path = self.path_for(table)
        rows: list[dict] = []

        if path.exists():
            try:
                with open(path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                if isinstance(data, list):
                    rows = [row for row in data if isinstance(row, dict)]
                else:
                    logger.warning(f"{path} does not contain a JSON array, starting empty")
            except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
                logger.warning(f"Could not read {path}: {e}; starting empty")

        self._tables[table] = rows
        return [dict(row) for row in rows]

    def append(self, table: str, record: dict) -> None:
        self._rows(table).append(dict(record))
        self._write(table)

    def replace(self, table: str, record: dict) -> None:
        rows = self._rows(table)
        for idx, row in enumerate(rows):
            if row.get("id") == record["id"]:
                rows[idx] = dict(record)
                break
        self._write(table)

    def delete(self, table: str, ids: list[int]) -> None:
        if not ids:
            return
        doomed = set(ids)
        rows = self._rows(table)
        rows[:] = [row for row in rows if row.get("id") not in doomed]
        self._write(table)

    def reset(self, table: str, records: list[dict]) -> None:
        # Dropped rows disappear from the file on the next write
        self._tables[table] = [dict(record) for record in records]

    def close(self) -> None:
        self._tables.clear()

    def _rows(self, table: str) -> list[dict]:
        return self._tables.setdefault(table, [])

    def _write(self, table: str) -> None:
        path = self.path_for(table)
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(self._rows(table), f, indent=2, ensure_ascii=False)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write {path}: {e}")


TABLE_MODELS = {
    "categories": Category,
    "payments": Payment,
    "items": Item,
}


class SqlAlchemyBackend:
    """SQLite ledger with the same tables and columns as the JSON files."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.engine = open_database(self.db_path)
        self._session_factory = make_session_factory(self.engine)

    def load_all(self, table: str) -> list[dict]:
        model = TABLE_MODELS[table]
        try:
            with session_scope(self._session_factory) as session:
                rows = session.query(model).order_by(model.id).all()
                return [row.to_record() for row in rows]
        except SQLAlchemyError as e:
            logger.warning(f"Could not read table {table}: {e}; starting empty")
            return []

    def append(self, table: str, record: dict) -> None:
        model = TABLE_MODELS[table]
        try:
            with session_scope(self._session_factory) as session:
                session.add(model(**self._columns(model, record)))
        except SQLAlchemyError as e:
            logger.error(f"Failed to insert into {table}: {e}")

    def replace(self, table: str, record: dict) -> None:
        model = TABLE_MODELS[table]
        try:
            with session_scope(self._session_factory) as session:
                session.merge(model(**self._columns(model, record)))
        except SQLAlchemyError as e:
            logger.error(f"Failed to update {table} row {record.get('id')}: {e}")

    def delete(self, table: str, ids: list[int]) -> None:
        if not ids:
            return
        model = TABLE_MODELS[table]
        try:
            with session_scope(self._session_factory) as session:
                session.query(model).filter(model.id.in_(ids)).delete(synchronize_session=False)
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete from {table}: {e}")

    def reset(self, table: str, records: list[dict]) -> None:
        # Rows are read from typed columns keyed by id, there is no cache to prune
        pass

    def close(self) -> None:
        self.engine.dispose()

    @staticmethod
    def _columns(model, record: dict) -> dict:
        names = {column.name for column in model.__table__.columns}
        return {key: value for key, value in record.items() if key in names}
