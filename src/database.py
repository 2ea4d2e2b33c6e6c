"""SQLite storage for family members and their relations."""

from pathlib import Path
import sqlite3
import uuid

from models import Member, RawRelation, RelationKind


def create_database(db_path: Path | str) -> sqlite3.Connection:
    """Create SQLite database with family_member and relation tables."""
    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS family_member (
            id TEXT PRIMARY KEY,
            first_name TEXT NOT NULL,
            last_name TEXT NOT NULL,
            birth_date TEXT,
            death_date TEXT,
            gender TEXT,
            position INTEGER NOT NULL
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS relation (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            from_member_id TEXT NOT NULL,
            to_member_id TEXT NOT NULL,
            relation_type TEXT NOT NULL
                CHECK (relation_type IN ('parent', 'child', 'spouse', 'sibling')),
            FOREIGN KEY (from_member_id) REFERENCES family_member(id) ON DELETE CASCADE,
            FOREIGN KEY (to_member_id) REFERENCES family_member(id) ON DELETE CASCADE
        )
    """)

    conn.commit()
    return conn


class SQLiteFamilyStore:
    """
    Family store backed by SQLite.

    `create_relation` writes the requested edge and its inverse, so every
    relationship is stored from both sides. Validation is not done here.
    """

    def __init__(self, db_path: Path | str = ":memory:"):
        self.conn = create_database(db_path)
        self.conn.execute("PRAGMA foreign_keys = ON")

    def close(self):
        self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def add_member(
        self,
        first_name: str,
        last_name: str,
        birth_date: str | None = None,
        death_date: str | None = None,
        gender: str | None = None,
        member_id: str | None = None,
    ) -> Member:
        member = Member(
            id=member_id or uuid.uuid4().hex,
            first_name=first_name,
            last_name=last_name,
            birth_date=birth_date,
            death_date=death_date,
            gender=gender,
        )
        (position,) = self.conn.execute(
            "SELECT COALESCE(MAX(position), -1) + 1 FROM family_member"
        ).fetchone()
        self.conn.execute(
            """
            INSERT INTO family_member (id, first_name, last_name, birth_date, death_date, gender, position)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                member.id,
                member.first_name,
                member.last_name,
                member.birth_date,
                member.death_date,
                member.gender,
                position,
            ),
        )
        self.conn.commit()
        return member

    def list_members(self) -> list[Member]:
        rows = self.conn.execute(
            """
            SELECT id, first_name, last_name, birth_date, death_date, gender
            FROM family_member ORDER BY position
            """
        ).fetchall()
        return [Member(*row) for row in rows]

    def list_relations(self) -> list[RawRelation]:
        rows = self.conn.execute(
            "SELECT id, from_member_id, to_member_id, relation_type FROM relation ORDER BY id"
        ).fetchall()
        return [
            RawRelation(id=str(rid), source_id=src, target_id=dst, kind=RelationKind(kind))
            for rid, src, dst, kind in rows
        ]

    def insert_raw_relation(self, from_id: str, to_id: str, kind: RelationKind) -> str:
        """Insert a single stored edge without its inverse."""
        cursor = self.conn.execute(
            "INSERT INTO relation (from_member_id, to_member_id, relation_type) VALUES (?, ?, ?)",
            (from_id, to_id, RelationKind.parse(kind).value),
        )
        self.conn.commit()
        return str(cursor.lastrowid)

    def create_relation(self, from_id: str, to_id: str, kind: RelationKind) -> str:
        kind = RelationKind.parse(kind)
        insert = "INSERT INTO relation (from_member_id, to_member_id, relation_type) VALUES (?, ?, ?)"
        with self.conn:
            cursor = self.conn.execute(insert, (from_id, to_id, kind.value))
            self.conn.execute(insert, (to_id, from_id, kind.inverse().value))
        return str(cursor.lastrowid)

    def delete_relation(self, relation_id: str) -> bool:
        """Delete a relation and its inverse. Returns False if it did not exist."""
        try:
            rid = int(relation_id)
        except (TypeError, ValueError):
            return False
        row = self.conn.execute(
            "SELECT from_member_id, to_member_id, relation_type FROM relation WHERE id = ?",
            (rid,),
        ).fetchone()
        if row is None:
            return False
        from_id, to_id, kind = row
        with self.conn:
            self.conn.execute("DELETE FROM relation WHERE id = ?", (rid,))
            self.conn.execute(
                "DELETE FROM relation WHERE from_member_id = ? AND to_member_id = ? AND relation_type = ?",
                (to_id, from_id, RelationKind(kind).inverse().value),
            )
        return True
