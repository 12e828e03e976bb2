"""SQLite-backed attendee directory.

Every write runs inside a ``FileLock`` on ``<db>.lock`` and a single SQLite
transaction. Registration holds ``BEGIN IMMEDIATE`` across the id scan and
the insert so two concurrent registrations can never pick the same id.
"""

import logging
import sqlite3
import uuid
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional

from filelock import FileLock, Timeout
from pydantic import BaseModel, field_validator
from pydantic import ValidationError as PydanticValidationError

from allocator import next_id
from errors import AttendeeNotFound, StorageError, ValidationError

logger = logging.getLogger(__name__)

SEARCH_COLUMNS = ("name", "email", "company", "mobile", "designation")


class Role(str, Enum):
    DELEGATE = "Delegate"
    FACULTY = "Faculty"
    ORGANISER = "Organiser"


# -------------------
# --- DATA MODEL ---
# -------------------
class AttendeeIn(BaseModel):
    """Editable attendee fields, as submitted by the registration or admin form."""

    name: str
    email: str
    company: str = ""
    mobile: str = ""
    designation: str = ""
    role: Role = Role.DELEGATE

    @field_validator("name", "email")
    @classmethod
    def required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("company", "mobile", "designation", mode="before")
    @classmethod
    def optional(cls, v):
        return (v or "").strip()

    @field_validator("role", mode="before")
    @classmethod
    def default_role(cls, v):
        return v or Role.DELEGATE


class Attendee(AttendeeIn):
    id: int
    barcode: str
    printed: bool = False
    checked_in: bool = False


def parse_attendee(**data) -> AttendeeIn:
    """Build an ``AttendeeIn``, turning pydantic errors into ``ValidationError``."""
    try:
        return AttendeeIn(**data)
    except PydanticValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors())
        raise ValidationError(f"Invalid or missing: {fields}") from e


# -------------------
# --- DIRECTORY ---
# -------------------
class AttendeeDirectory:
    def __init__(self, db_path: Path, lock_path: Path, lock_timeout: float = 5.0):
        self.db_path = Path(db_path)
        self.lock = FileLock(str(lock_path), timeout=lock_timeout)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, isolation_level=None)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _read(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = self._connect()
        except sqlite3.Error as e:
            raise StorageError(str(e)) from e
        try:
            yield conn
        except sqlite3.Error as e:
            raise StorageError(str(e)) from e
        finally:
            conn.close()

    @contextmanager
    def _write(self, immediate: bool = False) -> Iterator[sqlite3.Connection]:
        """Serialized write transaction; rolled back on any error."""
        try:
            with self.lock:
                conn = self._connect()
                try:
                    conn.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
                    yield conn
                    conn.execute("COMMIT")
                except BaseException:
                    if conn.in_transaction:
                        conn.execute("ROLLBACK")
                    raise
                finally:
                    conn.close()
        except Timeout as e:
            raise StorageError(f"Timed out waiting for {self.lock.lock_file}") from e
        except sqlite3.Error as e:
            raise StorageError(str(e)) from e

    def init_db(self):
        """Create tables if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._write() as conn:
            # id is assigned by the allocator, never by SQLite
            conn.execute("""
                CREATE TABLE IF NOT EXISTS attendees (
                    id INTEGER PRIMARY KEY,
                    name TEXT NOT NULL,
                    email TEXT NOT NULL,
                    company TEXT NOT NULL DEFAULT '',
                    mobile TEXT NOT NULL DEFAULT '',
                    designation TEXT NOT NULL DEFAULT '',
                    role TEXT NOT NULL DEFAULT 'Delegate',
                    barcode TEXT NOT NULL UNIQUE,
                    printed INTEGER NOT NULL DEFAULT 0,
                    checked_in INTEGER NOT NULL DEFAULT 0
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS issued_barcodes (
                    barcode TEXT PRIMARY KEY
                )
            """)
        logger.info("Attendee database ready at %s", self.db_path)

    # --- reads ---
    def all_ids(self) -> List[int]:
        with self._read() as conn:
            return [row[0] for row in conn.execute("SELECT id FROM attendees ORDER BY id")]

    def get(self, attendee_id: int) -> Attendee:
        with self._read() as conn:
            row = conn.execute("SELECT * FROM attendees WHERE id = ?", (attendee_id,)).fetchone()
        if row is None:
            raise AttendeeNotFound(attendee_id)
        return Attendee(**dict(row))

    def get_by_barcode(self, barcode: str) -> Attendee:
        with self._read() as conn:
            row = conn.execute("SELECT * FROM attendees WHERE barcode = ?", (barcode,)).fetchone()
        if row is None:
            raise AttendeeNotFound(barcode)
        return Attendee(**dict(row))

    def list(self, search: Optional[str] = None, role: Optional[str] = None) -> List[Attendee]:
        """All attendees ordered by id, optionally filtered by substring search and exact role."""
        where = []
        params = {}
        search = (search or "").strip()
        if search:
            where.append("(" + " OR ".join(f"{c} LIKE :s ESCAPE '\\'" for c in SEARCH_COLUMNS) + ")")
            escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            params["s"] = f"%{escaped}%"
        if role:
            where.append("role = :r")
            params["r"] = role
        query = "SELECT * FROM attendees"
        if where:
            query += " WHERE " + " AND ".join(where)
        query += " ORDER BY id"
        with self._read() as conn:
            rows = conn.execute(query, params).fetchall()
        return [Attendee(**dict(r)) for r in rows]

    # --- writes ---
    def register(self, data: AttendeeIn) -> Attendee:
        """Allocate the next free id and a fresh barcode, and insert, as one atomic unit."""
        with self._write(immediate=True) as conn:
            ids = [row[0] for row in conn.execute("SELECT id FROM attendees")]
            attendee_id = next_id(ids)
            barcode = self._issue_barcode(conn)
            conn.execute(
                "INSERT INTO attendees (id, name, email, company, mobile, designation, role, barcode)"
                " VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    attendee_id,
                    data.name,
                    data.email,
                    data.company,
                    data.mobile,
                    data.designation,
                    data.role.value,
                    barcode,
                ),
            )
        logger.info("Registered attendee %d (%s)", attendee_id, data.email)
        return Attendee(id=attendee_id, barcode=barcode, **data.model_dump())

    @staticmethod
    def _issue_barcode(conn: sqlite3.Connection) -> str:
        # Tokens are remembered forever so a deleted attendee's barcode is never handed out again.
        while True:
            barcode = str(uuid.uuid4())
            try:
                conn.execute("INSERT INTO issued_barcodes (barcode) VALUES (?)", (barcode,))
            except sqlite3.IntegrityError:
                continue
            return barcode

    def update(self, attendee_id: int, data: AttendeeIn) -> Attendee:
        """Overwrite the editable fields; id, barcode and status flags are untouched."""
        with self._write() as conn:
            cur = conn.execute(
                "UPDATE attendees SET name = ?, email = ?, company = ?, mobile = ?,"
                " designation = ?, role = ? WHERE id = ?",
                (
                    data.name,
                    data.email,
                    data.company,
                    data.mobile,
                    data.designation,
                    data.role.value,
                    attendee_id,
                ),
            )
            if cur.rowcount == 0:
                raise AttendeeNotFound(attendee_id)
        logger.info("Updated attendee %d", attendee_id)
        return self.get(attendee_id)

    def delete(self, attendee_id: int):
        with self._write() as conn:
            cur = conn.execute("DELETE FROM attendees WHERE id = ?", (attendee_id,))
            if cur.rowcount == 0:
                raise AttendeeNotFound(attendee_id)
        logger.info("Deleted attendee %d", attendee_id)

    def mark_printed(self, attendee_id: int):
        with self._write() as conn:
            cur = conn.execute("UPDATE attendees SET printed = 1 WHERE id = ?", (attendee_id,))
            if cur.rowcount == 0:
                raise AttendeeNotFound(attendee_id)

    def check_in(self, barcode: str) -> Attendee:
        """Mark the attendee holding ``barcode`` as checked in. Repeating it is harmless."""
        barcode = (barcode or "").strip()
        with self._write() as conn:
            cur = conn.execute("UPDATE attendees SET checked_in = 1 WHERE barcode = ?", (barcode,))
            if cur.rowcount == 0:
                raise AttendeeNotFound(barcode)
        attendee = self.get_by_barcode(barcode)
        logger.info("Checked in attendee %d", attendee.id)
        return attendee
