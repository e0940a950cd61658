import json
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence, Type

from locallibrary import database
from locallibrary.errors import StoreError
from locallibrary.models import Author, Book, BookInstance, BookInstanceStatus, Genre, Record

logger = logging.getLogger(__name__)

# SQLite builds before 3.32 cap a statement at 999 bound parameters
MAX_BOUND_PARAMETERS = 999


class Collection:
    """One collection of documents backed by a SQLite table.

    Records are addressed by a store-generated string id. Fields listed in
    ``json_fields`` are stored as JSON text (lists of referenced ids).
    """

    def __init__(self, table: str, model: Type[Record], db_file: Optional[str] = None,
                 json_fields: Sequence[str] = ()) -> None:
        self.table = table
        self.model = model
        self.db_file = db_file
        self.json_fields = tuple(json_fields)
        self.fields = [name for name in model.model_fields if name != "id"]

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        conn = None
        try:
            conn = database.get_db_connection(self.db_file)
            yield conn
        except sqlite3.Error as e:
            logger.error(f"Store operation on {self.table} failed: {e}")
            raise StoreError(f"{self.table}: {e}") from e
        finally:
            if conn is not None:
                conn.close()

    def _column(self, name: str) -> str:
        if name != "id" and name not in self.fields:
            raise ValueError(f"Unknown field for {self.table}: {name}")
        return name

    def _where(self, where: Optional[Dict[str, Any]]) -> tuple:
        if not where:
            return "", ()
        clauses = [f"{self._column(k)} = ?" for k in where]
        return " WHERE " + " AND ".join(clauses), tuple(where.values())

    def _to_record(self, row: sqlite3.Row) -> Record:
        data = {k: row[k] for k in row.keys() if k != "created_at"}
        for name in self.json_fields:
            raw = data.get(name)
            data[name] = json.loads(raw) if raw else []
        return self.model.from_dict(data)

    def _to_row(self, record: Record) -> Dict[str, Any]:
        data = record.to_dict()
        for name in self.json_fields:
            data[name] = json.dumps(data.get(name) or [])
        return {name: data.get(name) for name in self.fields}

    # ------------------------- Reads ------------------------- #
    def find(self, where: Optional[Dict[str, Any]] = None, sort: Optional[str] = None) -> List[Record]:
        """All records matching ``where``, ordered by ``sort`` or insertion order."""
        clause, params = self._where(where)
        order = f" ORDER BY {self._column(sort)}, rowid" if sort else " ORDER BY rowid"
        with self._connection() as conn:
            rows = conn.execute(f"SELECT * FROM {self.table}{clause}{order}", params).fetchall()
        return [self._to_record(row) for row in rows]

    def find_one(self, **where: Any) -> Optional[Record]:
        clause, params = self._where(where)
        with self._connection() as conn:
            row = conn.execute(
                f"SELECT * FROM {self.table}{clause} ORDER BY rowid LIMIT 1", params
            ).fetchone()
        return self._to_record(row) if row else None

    def find_by_id(self, record_id: str) -> Optional[Record]:
        return self.find_one(id=record_id)

    def find_many(self, ids: Sequence[str]) -> List[Record]:
        """Resolve ids to records, keeping the order of ``ids``; unknown ids are skipped."""
        wanted = [i for i in dict.fromkeys(ids) if i]
        if not wanted:
            return []
        rows = []
        with self._connection() as conn:
            for start in range(0, len(wanted), MAX_BOUND_PARAMETERS):
                chunk = wanted[start:start + MAX_BOUND_PARAMETERS]
                marks = ", ".join("?" for _ in chunk)
                rows.extend(conn.execute(f"SELECT * FROM {self.table} WHERE id IN ({marks})", chunk).fetchall())
        by_id = {row["id"]: self._to_record(row) for row in rows}
        return [by_id[i] for i in wanted if i in by_id]

    def find_containing(self, field: str, value: str, sort: Optional[str] = None) -> List[Record]:
        """Records whose JSON list ``field`` contains ``value``."""
        if field not in self.json_fields:
            raise ValueError(f"{self.table}.{field} is not a list field")
        order = f" ORDER BY {self._column(sort)}, rowid" if sort else " ORDER BY rowid"
        query = (
            f"SELECT * FROM {self.table} WHERE EXISTS "
            f"(SELECT 1 FROM json_each({self.table}.{field}) WHERE json_each.value = ?){order}"
        )
        with self._connection() as conn:
            rows = conn.execute(query, (value,)).fetchall()
        return [self._to_record(row) for row in rows]

    def count(self, **where: Any) -> int:
        clause, params = self._where(where)
        with self._connection() as conn:
            return conn.execute(f"SELECT COUNT(*) FROM {self.table}{clause}", params).fetchone()[0]

    # ------------------------- Writes ------------------------- #
    def insert(self, record: Record) -> Record:
        """Persist a new record under a freshly generated id."""
        row = self._to_row(record)
        record_id = uuid.uuid4().hex
        columns = ["id", *row.keys()]
        marks = ", ".join("?" for _ in columns)
        with self._connection() as conn:
            conn.execute(
                f"INSERT INTO {self.table} ({', '.join(columns)}) VALUES ({marks})",
                (record_id, *row.values()),
            )
            conn.commit()
        logger.info(f"Inserted {self.table} {record_id}")
        return record.model_copy(update={"id": record_id})

    def update(self, record_id: str, record: Record) -> Optional[Record]:
        """Replace the stored fields of ``record_id``; None when it does not exist."""
        row = self._to_row(record)
        assignments = ", ".join(f"{name} = ?" for name in row)
        with self._connection() as conn:
            cursor = conn.execute(
                f"UPDATE {self.table} SET {assignments} WHERE id = ?",
                (*row.values(), record_id),
            )
            conn.commit()
            if cursor.rowcount == 0:
                return None
        logger.info(f"Updated {self.table} {record_id}")
        return record.model_copy(update={"id": record_id})

    def delete(self, record_id: str) -> bool:
        with self._connection() as conn:
            cursor = conn.execute(f"DELETE FROM {self.table} WHERE id = ?", (record_id,))
            conn.commit()
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info(f"Deleted {self.table} {record_id}")
        return deleted


class CatalogStore:
    """The four catalog collections and the queries between them."""

    def __init__(self, db_file: Optional[str] = None) -> None:
        self.db_file = db_file
        database.initialize_database(db_file)

        self.authors = Collection("authors", Author, db_file)
        self.genres = Collection("genres", Genre, db_file)
        self.books = Collection("books", Book, db_file, json_fields=("genre",))
        self.book_instances = Collection("book_instances", BookInstance, db_file)

    # Records that reference another record
    def books_by_author(self, author_id: str) -> List[Book]:
        return self.books.find({"author": author_id}, sort="title")

    def books_by_genre(self, genre_id: str) -> List[Book]:
        return self.books.find_containing("genre", genre_id, sort="title")

    def instances_of_book(self, book_id: str) -> List[BookInstance]:
        return self.book_instances.find({"book": book_id})

    def available_instance_count(self) -> int:
        return self.book_instances.count(status=BookInstanceStatus.AVAILABLE.value)
