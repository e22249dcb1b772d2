from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from cleanshare.database.connection import get_connection
from cleanshare.database.models import ProvenanceRecord
from cleanshare.processor.exceptions import PersistenceError, RecordNotFoundError
from cleanshare.scrubbing.models import snapshot_to_json

_COLUMNS = """
    file_id, original_name, mime_type, size_bytes, storage_path,
    file_hash_sha256, content_identifier, ledger_tx_id,
    original_metadata, cleaned_metadata, owner, status, cleaned, created_at
"""


class ProvenanceRepository:
    """Database operations for the provenance_records table."""

    def insert(self, record: ProvenanceRecord) -> None:
        """Insert a finished record in a single transaction.

        Raises:
            PersistenceError: if the row cannot be written.
        """
        try:
            with get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        f"""
                        INSERT INTO provenance_records ({_COLUMNS})
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                        """,
                        (
                            record.file_id,
                            record.original_name,
                            record.mime_type,
                            record.size,
                            record.storage_path,
                            record.fingerprint,
                            record.content_identifier,
                            record.ledger_tx_id,
                            Jsonb(snapshot_to_json(record.original_metadata)),
                            Jsonb(snapshot_to_json(record.cleaned_metadata)),
                            record.owner,
                            record.status,
                            record.cleaned,
                            record.created_at,
                        ),
                    )
                conn.commit()
        except psycopg.Error as exc:
            raise PersistenceError(f"Could not store record {record.file_id}: {exc}") from exc

    def find_by_file_id(self, file_id: str) -> ProvenanceRecord:
        """Find a record by its public file identifier.

        Raises:
            RecordNotFoundError: if no record with this file_id exists.
        """
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM provenance_records WHERE file_id = %s",
                    (file_id,),
                )
                row = cur.fetchone()

        if row is None:
            raise RecordNotFoundError(f"Record {file_id} not found")
        return self._to_record(row)

    def find_by_hash(self, fingerprint: str) -> list[ProvenanceRecord]:
        """All records whose final bytes have this fingerprint, oldest first."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_COLUMNS} FROM provenance_records
                    WHERE file_hash_sha256 = %s
                    ORDER BY created_at
                    """,
                    (fingerprint,),
                )
                rows = cur.fetchall()
        return [self._to_record(row) for row in rows]

    @staticmethod
    def _to_record(row: dict[str, Any]) -> ProvenanceRecord:
        return ProvenanceRecord(
            file_id=str(row["file_id"]),
            original_name=row["original_name"],
            mime_type=row["mime_type"],
            size=row["size_bytes"],
            storage_path=row["storage_path"],
            fingerprint=row["file_hash_sha256"],
            content_identifier=row["content_identifier"],
            ledger_tx_id=row["ledger_tx_id"],
            original_metadata=row["original_metadata"] or {},
            cleaned_metadata=row["cleaned_metadata"] or {},
            owner=row["owner"],
            status=row["status"],
            cleaned=row["cleaned"],
            created_at=row["created_at"],
        )
