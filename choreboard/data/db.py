"""
Chore Board — Board Database.

SQLite implementation of StoragePort: the kids, chores and kids_chores
tables. A (kid_id, chore_id, assigned_date) triple is unique at the table
level, so two racing inserts cannot both succeed.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import date, datetime
from pathlib import Path

from choreboard.data.models import KID_COLORS, Assignment, Chore, Kid, KidChore
from choreboard.ports.storage_port import (
    DuplicateAssignmentError,
    DuplicateKeyError,
    StorageError,
)

logger = logging.getLogger(__name__)


class BoardDB:
    """SQLite-backed storage for kids, chores and their assignments."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from choreboard.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        """Create the three tables if they don't exist, and migrate schema."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kids (
                    id          INTEGER PRIMARY KEY AUTOINCREMENT,
                    first_name  TEXT    NOT NULL,
                    last_name   TEXT    NOT NULL,
                    points      INTEGER NOT NULL DEFAULT 0,
                    avatar_url  TEXT
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS chores (
                    id          INTEGER PRIMARY KEY AUTOINCREMENT,
                    description TEXT    NOT NULL,
                    frequency   TEXT    NOT NULL DEFAULT 'one-time',
                    created_at  TEXT    NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kids_chores (
                    id             INTEGER PRIMARY KEY AUTOINCREMENT,
                    kid_id         INTEGER NOT NULL,
                    chore_id       INTEGER NOT NULL,
                    assigned_date  TEXT    NOT NULL,
                    completed      INTEGER NOT NULL DEFAULT 0,
                    last_completed TEXT
                )
            """)
            conn.execute("""
                CREATE UNIQUE INDEX IF NOT EXISTS kids_chores_unique_triple
                ON kids_chores (kid_id, chore_id, assigned_date)
            """)
            # Migrate existing DBs: add new columns if missing
            existing_cols = {
                row[1] for row in conn.execute("PRAGMA table_info(kids)").fetchall()
            }
            if "color" not in existing_cols:
                conn.execute("ALTER TABLE kids ADD COLUMN color TEXT")
            if "phone" not in existing_cols:
                conn.execute("ALTER TABLE kids ADD COLUMN phone TEXT")
        logger.debug("Board tables initialized at %s", self._db_path)

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_kid(row: sqlite3.Row, position: int) -> Kid:
        return Kid(
            id=row["id"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            points=row["points"],
            avatar_url=row["avatar_url"],
            color=row["color"] or KID_COLORS[position % len(KID_COLORS)],
            phone=row["phone"],
        )

    @staticmethod
    def _row_to_chore(row: sqlite3.Row) -> Chore:
        return Chore(
            id=row["id"],
            description=row["description"],
            frequency=row["frequency"],
            created_at=row["created_at"],
        )

    @staticmethod
    def _row_to_assignment(row: sqlite3.Row) -> Assignment:
        return Assignment(
            id=row["id"],
            kid_id=row["kid_id"],
            chore_id=row["chore_id"],
            assigned_date=date.fromisoformat(row["assigned_date"]),
            completed=bool(row["completed"]),
            last_completed=row["last_completed"],
        )

    # ------------------------------------------------------------------
    # Kids
    # ------------------------------------------------------------------

    def list_kids(self) -> list[Kid]:
        """Return all kids in id order, each with its display color."""
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM kids ORDER BY id").fetchall()
        return [self._row_to_kid(r, i) for i, r in enumerate(rows)]

    def get_kid(self, kid_id: int) -> Kid | None:
        """Fetch a single kid by ID."""
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM kids WHERE id = ?", (kid_id,)).fetchone()
            if row is None:
                return None
            position = conn.execute(
                "SELECT COUNT(*) FROM kids WHERE id < ?", (kid_id,)
            ).fetchone()[0]
        return self._row_to_kid(row, position)

    def add_kid(
        self,
        first_name: str,
        last_name: str,
        points: int = 0,
        avatar_url: str | None = None,
        color: str | None = None,
        phone: str | None = None,
    ) -> Kid:
        """Insert a new kid."""
        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO kids (first_name, last_name, points, avatar_url, color, phone)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (first_name, last_name, points, avatar_url, color, phone),
            )
            kid_id = cursor.lastrowid
        logger.info("Kid added: #%d '%s %s'", kid_id, first_name, last_name)
        return self.get_kid(kid_id)

    def add_points(self, kid_id: int, delta: int) -> Kid:
        """Add (or with a negative delta, remove) points from a kid's total."""
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE kids SET points = points + ? WHERE id = ?", (delta, kid_id),
            )
        if cursor.rowcount == 0:
            raise StorageError(f"Kid {kid_id} not found")
        kid = self.get_kid(kid_id)
        logger.info("Kid #%d points %+d -> %d", kid_id, delta, kid.points)
        return kid

    def set_avatar(self, kid_id: int, avatar_url: str) -> None:
        """Point a kid's avatar at a new image."""
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE kids SET avatar_url = ? WHERE id = ?", (avatar_url, kid_id),
            )
        if cursor.rowcount == 0:
            raise StorageError(f"Kid {kid_id} not found")
        logger.info("Kid #%d avatar set", kid_id)

    # ------------------------------------------------------------------
    # Chores
    # ------------------------------------------------------------------

    def list_chores(self) -> list[Chore]:
        """Return all chores, newest first."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM chores ORDER BY created_at DESC, id DESC"
            ).fetchall()
        return [self._row_to_chore(r) for r in rows]

    def get_chore(self, chore_id: int) -> Chore | None:
        """Fetch a single chore by ID."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM chores WHERE id = ?", (chore_id,)
            ).fetchone()
        if row is None:
            return None
        return self._row_to_chore(row)

    def next_chore_id(self) -> int:
        """Return max(id) + 1, or 1 for an empty table."""
        with self._connect() as conn:
            row = conn.execute("SELECT MAX(id) FROM chores").fetchone()
        return (row[0] or 0) + 1

    def add_chore(
        self, description: str, frequency: str, chore_id: int | None = None,
    ) -> Chore:
        """Insert a chore, with an explicit id when one is given."""
        created_at = datetime.now().isoformat()
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    "INSERT INTO chores (id, description, frequency, created_at) VALUES (?, ?, ?, ?)",
                    (chore_id, description, frequency, created_at),
                )
                chore_id = cursor.lastrowid
        except sqlite3.IntegrityError as exc:
            raise DuplicateKeyError(f"Chore id {chore_id} already exists") from exc

        logger.info("Chore added: #%d '%s' (%s)", chore_id, description, frequency)
        return Chore(
            id=chore_id, description=description, frequency=frequency, created_at=created_at,
        )

    def update_chore(self, chore_id: int, description: str, frequency: str) -> Chore:
        """Edit a chore's description and frequency."""
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE chores SET description = ?, frequency = ? WHERE id = ?",
                (description, frequency, chore_id),
            )
        if cursor.rowcount == 0:
            raise StorageError(f"Chore {chore_id} not found")
        logger.info("Chore #%d updated", chore_id)
        return self.get_chore(chore_id)

    def delete_chore(self, chore_id: int) -> bool:
        """Permanently delete a chore. Its assignments are left in place."""
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM chores WHERE id = ?", (chore_id,))
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Chore #%d deleted", chore_id)
        return deleted

    # ------------------------------------------------------------------
    # Assignments (kids_chores)
    # ------------------------------------------------------------------

    def list_assignments(
        self,
        kid_id: int | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[Assignment]:
        """List assignments, optionally for one kid and an inclusive date range."""
        conditions: list[str] = []
        params: list = []
        if kid_id is not None:
            conditions.append("kid_id = ?")
            params.append(kid_id)
        if start is not None:
            conditions.append("assigned_date >= ?")
            params.append(start.isoformat())
        if end is not None:
            conditions.append("assigned_date <= ?")
            params.append(end.isoformat())

        query = "SELECT * FROM kids_chores"
        if conditions:
            query += " WHERE " + " AND ".join(conditions)
        query += " ORDER BY id"

        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_assignment(r) for r in rows]

    def get_assignment(self, assignment_id: int) -> Assignment | None:
        """Fetch a single assignment by ID."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM kids_chores WHERE id = ?", (assignment_id,)
            ).fetchone()
        if row is None:
            return None
        return self._row_to_assignment(row)

    def find_assignment(
        self, kid_id: int, chore_id: int, assigned_date: date,
    ) -> Assignment | None:
        """Look up the assignment for a (kid, chore, date) triple."""
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT * FROM kids_chores
                WHERE kid_id = ? AND chore_id = ? AND assigned_date = ?
                """,
                (kid_id, chore_id, assigned_date.isoformat()),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_assignment(row)

    def next_assignment_id(self) -> int:
        """Return max(id) + 1, or 1 for an empty table."""
        with self._connect() as conn:
            row = conn.execute("SELECT MAX(id) FROM kids_chores").fetchone()
        return (row[0] or 0) + 1

    def add_assignment(
        self,
        kid_id: int,
        chore_id: int,
        assigned_date: date,
        assignment_id: int | None = None,
    ) -> Assignment:
        """Insert an assignment.

        Raises DuplicateAssignmentError when the triple is already taken and
        DuplicateKeyError when an explicit id collides.
        """
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO kids_chores (id, kid_id, chore_id, assigned_date, completed)
                    VALUES (?, ?, ?, ?, 0)
                    """,
                    (assignment_id, kid_id, chore_id, assigned_date.isoformat()),
                )
                assignment_id = cursor.lastrowid
        except sqlite3.IntegrityError as exc:
            if "kid_id" in str(exc):
                raise DuplicateAssignmentError(
                    f"Chore {chore_id} already assigned to kid {kid_id} on {assigned_date}"
                ) from exc
            raise DuplicateKeyError(f"Assignment id {assignment_id} already exists") from exc

        logger.info(
            "Assignment added: #%d kid=%d chore=%d on %s",
            assignment_id, kid_id, chore_id, assigned_date,
        )
        return Assignment(
            id=assignment_id, kid_id=kid_id, chore_id=chore_id, assigned_date=assigned_date,
        )

    def set_completed(self, assignment_id: int, completed: bool) -> Assignment:
        """Set the completion flag; last_completed tracks the latest completion."""
        last_completed = datetime.now().isoformat() if completed else None
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE kids_chores SET completed = ?, last_completed = ? WHERE id = ?",
                (int(completed), last_completed, assignment_id),
            )
        if cursor.rowcount == 0:
            raise StorageError(f"Assignment {assignment_id} not found")
        logger.info("Assignment #%d completed=%s", assignment_id, completed)
        return self.get_assignment(assignment_id)

    def delete_assignment(self, assignment_id: int) -> bool:
        """Permanently delete an assignment by ID."""
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM kids_chores WHERE id = ?", (assignment_id,),
            )
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Assignment #%d deleted", assignment_id)
        return deleted

    def list_kid_chores(self, kid_id: int) -> list[KidChore]:
        """Return a kid's assignments joined with their chores.

        Assignments whose chore no longer exists are left out.
        """
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT kc.id AS kid_chore_id, kc.assigned_date, kc.completed,
                       c.id AS chore_id, c.description
                FROM kids_chores kc
                JOIN chores c ON c.id = kc.chore_id
                WHERE kc.kid_id = ?
                ORDER BY kc.assigned_date, kc.id
                """,
                (kid_id,),
            ).fetchall()
        return [
            KidChore(
                kid_chore_id=r["kid_chore_id"],
                chore_id=r["chore_id"],
                description=r["description"],
                assigned_date=date.fromisoformat(r["assigned_date"]),
                completed=bool(r["completed"]),
            )
            for r in rows
        ]
