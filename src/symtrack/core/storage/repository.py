"""Symptom repository — CRUD and history queries over the symptom journal.

The repository mediates between :class:`StoredSymptom` and SQLite, using
FieldEncryptor for the free-text details. It also owns the three policies
that pick which symptoms an analysis looks at.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from symtrack.core.rules.models import DURATION_UNITS
from symtrack.core.storage.database import SymptomDatabase
from symtrack.core.storage.encryption import FieldEncryptor
from symtrack.core.storage.models import SYMPTOM_STATUSES, StoredSymptom

logger = logging.getLogger(__name__)

PREDEFINED_SYMPTOMS = [
    "Headache", "Fever", "Cough", "Sore throat", "Runny nose",
    "Nausea", "Fatigue", "Muscle aches", "Chest pain", "Shortness of breath",
    "Dizziness", "Abdominal pain", "Back pain", "Joint pain", "Insomnia",
]

# Fields update_symptom may change, and whether they are stored encrypted.
_PLAIN_FIELDS = {
    "name": "name",
    "severity": "severity",
    "duration_value": "duration_value",
    "duration_unit": "duration_unit",
    "temperature": "temperature",
    "status": "status",
    "follow_up_date": "follow_up_date",
}
_ENCRYPTED_FIELDS = {
    "description": "description_enc",
    "location": "location_enc",
    "triggers": "triggers_enc",
    "associated_symptoms": "associated_enc",
    "blood_pressure": "blood_pressure_enc",
    "medications": "medications_enc",
    "tags": "tags_enc",
    "notes": "notes_enc",
}


class RepositoryError(Exception):
    """Raised when repository operations fail."""


class SymptomValidationError(RepositoryError):
    """Raised when a symptom entry breaks a field constraint."""


def validate_symptom(symptom: StoredSymptom) -> None:
    """Check field constraints before a symptom is written.

    Raises:
        SymptomValidationError: On the first constraint that fails.
    """
    if not symptom.name or not symptom.name.strip():
        raise SymptomValidationError("Symptom name is required")
    if len(symptom.name) > 100:
        raise SymptomValidationError("Symptom name cannot exceed 100 characters")
    if isinstance(symptom.severity, bool) or not isinstance(symptom.severity, int):
        raise SymptomValidationError("Severity must be an integer")
    if not 1 <= symptom.severity <= 10:
        raise SymptomValidationError("Severity must be between 1 and 10")
    if symptom.duration_value is None or symptom.duration_value < 0:
        raise SymptomValidationError("Duration cannot be negative")
    if symptom.duration_unit not in DURATION_UNITS:
        raise SymptomValidationError(
            f"Duration unit must be one of: {', '.join(DURATION_UNITS)}"
        )
    if symptom.temperature is not None and not 95 <= symptom.temperature <= 115:
        raise SymptomValidationError("Temperature must be between 95 and 115 °F")
    if symptom.status not in SYMPTOM_STATUSES:
        raise SymptomValidationError(
            f"Status must be one of: {', '.join(SYMPTOM_STATUSES)}"
        )
    if len(symptom.description) > 500:
        raise SymptomValidationError("Description cannot exceed 500 characters")
    if len(symptom.notes) > 1000:
        raise SymptomValidationError("Notes cannot exceed 1000 characters")
    for associated in symptom.associated_symptoms:
        if not associated.get("name"):
            raise SymptomValidationError("Associated symptoms need a name")


class SymptomRepository:
    """CRUD repository for the encrypted symptom journal.

    Usage::

        db = SymptomDatabase(":memory:")
        db.initialize()
        repo = SymptomRepository(db, FieldEncryptor(key="..."))

        symptom_id = repo.create_symptom(symptom)
        batch = repo.select_for_analysis(include_all=True)
    """

    def __init__(self, database: SymptomDatabase, encryptor: FieldEncryptor) -> None:
        self._db = database
        self._enc = encryptor

    @property
    def database(self) -> SymptomDatabase:
        return self._db

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    @staticmethod
    def _iso(moment: datetime) -> str:
        return moment.isoformat(timespec="microseconds")

    def _now_iso(self) -> str:
        return self._iso(datetime.now(timezone.utc))

    # ------------------------------------------------------------------
    # Create / read
    # ------------------------------------------------------------------

    def create_symptom(self, symptom: StoredSymptom) -> str:
        """Validate and persist a symptom.

        Args:
            symptom: The entry to save. An empty ``id`` or ``created_at`` is
                filled in.

        Returns:
            The symptom ID.

        Raises:
            SymptomValidationError: If a field constraint fails.
        """
        validate_symptom(symptom)
        sid = symptom.id or self._new_id()
        created = symptom.created_at or self._now_iso()
        updated = symptom.updated_at or created

        conn = self._db.connection
        conn.execute(
            """INSERT INTO symptoms (
                id, name, severity, duration_value, duration_unit, temperature,
                status, follow_up_date,
                description_enc, location_enc, triggers_enc, associated_enc,
                blood_pressure_enc, medications_enc, tags_enc, notes_enc,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                sid,
                symptom.name.strip(),
                symptom.severity,
                symptom.duration_value,
                symptom.duration_unit,
                symptom.temperature,
                symptom.status,
                symptom.follow_up_date,
                self._enc.encrypt(symptom.description),
                self._enc.encrypt(symptom.location),
                self._enc.encrypt(symptom.triggers),
                self._enc.encrypt(symptom.associated_symptoms),
                self._enc.encrypt(symptom.blood_pressure),
                self._enc.encrypt(symptom.medications),
                self._enc.encrypt(symptom.tags),
                self._enc.encrypt(symptom.notes),
                created,
                updated,
            ),
        )
        conn.commit()
        logger.info("Saved symptom %s (severity=%d)", sid, symptom.severity)
        return sid

    def get_symptom(self, symptom_id: str) -> StoredSymptom | None:
        """Retrieve a symptom by ID, decrypting its details."""
        row = self._db.connection.execute(
            "SELECT * FROM symptoms WHERE id = ?", (symptom_id,)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_symptom(row)

    def get_symptoms_by_ids(self, symptom_ids: list[str]) -> list[StoredSymptom]:
        """Fetch the given symptoms, newest first. Unknown IDs are skipped."""
        if not symptom_ids:
            return []
        placeholders = ",".join("?" for _ in symptom_ids)
        rows = self._db.connection.execute(
            f"SELECT * FROM symptoms WHERE id IN ({placeholders}) ORDER BY created_at DESC",
            list(symptom_ids),
        ).fetchall()
        return [self._row_to_symptom(row) for row in rows]

    def list_symptoms(
        self,
        *,
        status: str | None = None,
        min_severity: int | None = None,
        name: str | None = None,
        since: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> list[StoredSymptom]:
        """Query symptoms with optional filters.

        Args:
            status: Exact status match.
            min_severity: Lower bound on severity (inclusive).
            name: Case-insensitive substring of the symptom name.
            since: ISO 8601 lower bound on ``created_at`` (inclusive).
            limit: Maximum results to return.
            offset: Number of results to skip (for paging).

        Returns:
            Matching symptoms, newest first.
        """
        where, params = self._filters(status=status, min_severity=min_severity, name=name, since=since)
        query = f"SELECT * FROM symptoms{where} ORDER BY created_at DESC LIMIT ? OFFSET ?"
        rows = self._db.connection.execute(query, [*params, limit, offset]).fetchall()
        return [self._row_to_symptom(row) for row in rows]

    def count_symptoms(
        self,
        *,
        status: str | None = None,
        min_severity: int | None = None,
        name: str | None = None,
    ) -> int:
        """Count symptoms matching the same filters as :meth:`list_symptoms`."""
        where, params = self._filters(status=status, min_severity=min_severity, name=name)
        row = self._db.connection.execute(
            f"SELECT COUNT(*) FROM symptoms{where}", params
        ).fetchone()
        return row[0]

    # ------------------------------------------------------------------
    # Update / delete
    # ------------------------------------------------------------------

    def update_symptom(self, symptom_id: str, changes: dict[str, Any]) -> StoredSymptom | None:
        """Apply field changes to a symptom.

        Returns:
            The updated symptom, or None if no symptom has that ID.

        Raises:
            RepositoryError: If ``changes`` names an unknown field.
            SymptomValidationError: If the result breaks a constraint.
        """
        unknown = set(changes) - set(_PLAIN_FIELDS) - set(_ENCRYPTED_FIELDS)
        if unknown:
            raise RepositoryError(f"Cannot update unknown field(s): {sorted(unknown)}")

        current = self.get_symptom(symptom_id)
        if current is None:
            return None
        if not changes:
            return current

        for key, value in changes.items():
            setattr(current, key, value)
        validate_symptom(current)
        current.updated_at = self._now_iso()

        assignments: list[str] = []
        params: list[Any] = []
        for key in changes:
            if key in _PLAIN_FIELDS:
                assignments.append(f"{_PLAIN_FIELDS[key]} = ?")
                params.append(getattr(current, key))
            else:
                assignments.append(f"{_ENCRYPTED_FIELDS[key]} = ?")
                params.append(self._enc.encrypt(getattr(current, key)))
        assignments.append("updated_at = ?")
        params.append(current.updated_at)

        conn = self._db.connection
        # Column names come from the fixed maps above.
        conn.execute(
            f"UPDATE symptoms SET {', '.join(assignments)} WHERE id = ?",
            [*params, symptom_id],
        )
        conn.commit()
        logger.info("Updated symptom %s (%s)", symptom_id, ", ".join(sorted(changes)))
        return current

    def delete_symptom(self, symptom_id: str) -> bool:
        """Delete one symptom. Returns True if it existed."""
        conn = self._db.connection
        cursor = conn.execute("DELETE FROM symptoms WHERE id = ?", (symptom_id,))
        conn.commit()
        if cursor.rowcount:
            logger.info("Deleted symptom %s", symptom_id)
            return True
        return False

    def purge_before_days(self, days: int) -> int:
        """Delete symptoms logged more than ``days`` days ago. Returns the count."""
        cutoff = self._iso(datetime.now(timezone.utc) - timedelta(days=days))
        conn = self._db.connection
        cursor = conn.execute("DELETE FROM symptoms WHERE created_at < ?", (cutoff,))
        conn.commit()
        logger.info("Purged %d symptoms older than %s", cursor.rowcount, cutoff)
        return cursor.rowcount

    def delete_all_data(self) -> int:
        """Delete every logged symptom. Returns the number removed."""
        conn = self._db.connection
        count = conn.execute("SELECT COUNT(*) FROM symptoms").fetchone()[0]
        conn.execute("DELETE FROM symptoms")
        conn.commit()
        logger.warning("Deleted ALL symptom data: %d symptoms removed", count)
        return count

    # ------------------------------------------------------------------
    # Analysis batch selection
    # ------------------------------------------------------------------

    def select_for_analysis(
        self,
        symptom_ids: list[str] | None = None,
        *,
        include_all: bool = False,
        now: datetime | None = None,
        recent_window_hours: int = 24,
        recent_limit: int = 5,
        active_window_days: int = 7,
    ) -> list[StoredSymptom]:
        """Pick the symptoms an analysis should look at.

        Policies, in priority order:

        1. ``symptom_ids`` given: exactly those symptoms.
        2. ``include_all``: active or worsening symptoms from the last
           ``active_window_days`` days.
        3. Otherwise: the ``recent_limit`` newest symptoms from the last
           ``recent_window_hours`` hours.
        """
        now = now or datetime.now(timezone.utc)

        if symptom_ids:
            return self.get_symptoms_by_ids(symptom_ids)

        if include_all:
            since = self._iso(now - timedelta(days=active_window_days))
            rows = self._db.connection.execute(
                """SELECT * FROM symptoms
                   WHERE status IN ('active', 'worsening') AND created_at >= ?
                   ORDER BY created_at DESC""",
                (since,),
            ).fetchall()
            return [self._row_to_symptom(row) for row in rows]

        since = self._iso(now - timedelta(hours=recent_window_hours))
        return self.list_symptoms(since=since, limit=recent_limit)

    # ------------------------------------------------------------------
    # History statistics
    # ------------------------------------------------------------------

    def get_stats(self, *, days: int = 30, now: datetime | None = None) -> dict[str, Any]:
        """Summarize the journal overall and over the last ``days`` days."""
        now = now or datetime.now(timezone.utc)
        since = self._iso(now - timedelta(days=days))
        conn = self._db.connection

        totals = conn.execute(
            """SELECT COUNT(*) AS total,
                      AVG(severity) AS avg_severity,
                      SUM(CASE WHEN status = 'active' THEN 1 ELSE 0 END) AS active,
                      SUM(CASE WHEN status = 'resolved' THEN 1 ELSE 0 END) AS resolved
               FROM symptoms"""
        ).fetchone()

        frequency_rows = conn.execute(
            """SELECT name, COUNT(*) AS count, AVG(severity) AS avg_severity,
                      MAX(created_at) AS latest
               FROM symptoms WHERE created_at >= ?
               GROUP BY name ORDER BY count DESC, latest DESC LIMIT 10""",
            (since,),
        ).fetchall()

        trend_rows = conn.execute(
            """SELECT substr(created_at, 1, 10) AS day, AVG(severity) AS avg_severity,
                      COUNT(*) AS count
               FROM symptoms WHERE created_at >= ?
               GROUP BY day ORDER BY day""",
            (since,),
        ).fetchall()

        recent_count = conn.execute(
            "SELECT COUNT(*) FROM symptoms WHERE created_at >= ?", (since,)
        ).fetchone()[0]

        frequency = [
            {
                "name": row["name"],
                "count": row["count"],
                "avg_severity": round(row["avg_severity"], 1),
                "latest_occurrence": row["latest"],
            }
            for row in frequency_rows
        ]

        return {
            "stats": {
                "total_symptoms": totals["total"],
                "average_severity": (
                    round(totals["avg_severity"], 1) if totals["avg_severity"] is not None else None
                ),
                "most_common_symptom": frequency[0]["name"] if frequency else None,
                "active_symptoms": totals["active"] or 0,
                "resolved_symptoms": totals["resolved"] or 0,
            },
            "recent_count": recent_count,
            "symptom_frequency": frequency,
            "severity_trends": [
                {
                    "date": row["day"],
                    "avg_severity": round(row["avg_severity"], 1),
                    "count": row["count"],
                }
                for row in trend_rows
            ],
            "timeframe_days": days,
        }

    def common_symptoms(self, *, limit: int = 10) -> list[dict[str, Any]]:
        """The user's most logged symptoms, then predefined suggestions they haven't used."""
        rows = self._db.connection.execute(
            """SELECT name, COUNT(*) AS count, AVG(severity) AS avg_severity
               FROM symptoms GROUP BY name ORDER BY count DESC, name LIMIT ?""",
            (limit,),
        ).fetchall()

        common = [
            {
                "name": row["name"],
                "frequency": row["count"],
                "avg_severity": round(row["avg_severity"], 1),
                "source": "user",
            }
            for row in rows
        ]
        used = {entry["name"].lower() for entry in common}
        for name in PREDEFINED_SYMPTOMS:
            if name.lower() not in used:
                common.append({"name": name, "frequency": 0, "avg_severity": 0, "source": "predefined"})
        return common

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _filters(
        *,
        status: str | None = None,
        min_severity: int | None = None,
        name: str | None = None,
        since: str | None = None,
    ) -> tuple[str, list[Any]]:
        conditions: list[str] = []
        params: list[Any] = []
        if status:
            conditions.append("status = ?")
            params.append(status)
        if min_severity is not None:
            conditions.append("severity >= ?")
            params.append(min_severity)
        if name:
            conditions.append("LOWER(name) LIKE ?")
            params.append(f"%{name.lower()}%")
        if since:
            conditions.append("created_at >= ?")
            params.append(since)
        where = (" WHERE " + " AND ".join(conditions)) if conditions else ""
        return where, params

    def _row_to_symptom(self, row: Any) -> StoredSymptom:
        """Convert a database row to a StoredSymptom with decrypted details."""
        return StoredSymptom(
            id=row["id"],
            name=row["name"],
            severity=row["severity"],
            duration_value=row["duration_value"],
            duration_unit=row["duration_unit"],
            temperature=row["temperature"],
            status=row["status"],
            follow_up_date=row["follow_up_date"],
            description=self._enc.decrypt(row["description_enc"]) or "",
            location=self._enc.decrypt(row["location_enc"]) or "",
            triggers=self._enc.decrypt(row["triggers_enc"]) or [],
            associated_symptoms=self._enc.decrypt(row["associated_enc"]) or [],
            blood_pressure=self._enc.decrypt(row["blood_pressure_enc"]),
            medications=self._enc.decrypt(row["medications_enc"]) or [],
            tags=self._enc.decrypt(row["tags_enc"]) or [],
            notes=self._enc.decrypt(row["notes_enc"]) or "",
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
