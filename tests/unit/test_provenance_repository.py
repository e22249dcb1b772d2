from datetime import UTC, datetime
from unittest.mock import MagicMock, patch

import psycopg
import pytest
from psycopg.types.json import Jsonb

from cleanshare.database.models import ProvenanceRecord
from cleanshare.database.repositories.provenance_repository import ProvenanceRepository
from cleanshare.processor.exceptions import PersistenceError, RecordNotFoundError

FILE_ID = "550e8400-e29b-41d4-a716-446655440000"
CREATED_AT = datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)


def _make_record() -> ProvenanceRecord:
    return ProvenanceRecord(
        file_id=FILE_ID,
        original_name="photo.jpg",
        mime_type="image/jpeg",
        size=2048,
        storage_path=f"/app/files/alice/{FILE_ID}.jpg",
        fingerprint="a" * 64,
        owner="alice",
        status="processed",
        cleaned=True,
        created_at=CREATED_AT,
        content_identifier="bafy-cid",
        ledger_tx_id="0x" + "b" * 64,
        original_metadata={"Make": "Canon", "Thumbnail": b"\x00\x01"},
        cleaned_metadata={"FileType": "JPEG"},
    )


def _make_row() -> dict:
    return {
        "file_id": FILE_ID,
        "original_name": "photo.jpg",
        "mime_type": "image/jpeg",
        "size_bytes": 2048,
        "storage_path": f"/app/files/alice/{FILE_ID}.jpg",
        "file_hash_sha256": "a" * 64,
        "content_identifier": None,
        "ledger_tx_id": "0x" + "b" * 64,
        "original_metadata": {"Make": "Canon"},
        "cleaned_metadata": None,
        "owner": "alice",
        "status": "processed",
        "cleaned": False,
        "created_at": CREATED_AT,
    }


def _mock_connection(mock_get_conn: MagicMock) -> tuple[MagicMock, MagicMock]:
    """Wire up a mock connection + cursor and return (mock_conn, mock_cursor)."""
    mock_cursor = MagicMock()
    mock_conn = MagicMock()
    mock_conn.cursor.return_value.__enter__ = MagicMock(return_value=mock_cursor)
    mock_conn.cursor.return_value.__exit__ = MagicMock(return_value=False)
    mock_get_conn.return_value.__enter__ = MagicMock(return_value=mock_conn)
    mock_get_conn.return_value.__exit__ = MagicMock(return_value=False)
    return mock_conn, mock_cursor


class TestInsert:
    @patch("cleanshare.database.repositories.provenance_repository.get_connection")
    def test_inserts_record_and_commits(self, mock_get_conn: MagicMock) -> None:
        mock_conn, mock_cursor = _mock_connection(mock_get_conn)

        ProvenanceRepository().insert(_make_record())

        sql, params = mock_cursor.execute.call_args.args
        assert "INSERT INTO provenance_records" in sql
        assert params[0] == FILE_ID
        assert params[5] == "a" * 64
        assert params[6] == "bafy-cid"
        assert isinstance(params[8], Jsonb)
        assert params[8].obj == {"Make": "Canon", "Thumbnail": "base64:AAE="}
        assert params[11] == "processed"
        mock_conn.commit.assert_called_once()

    @patch("cleanshare.database.repositories.provenance_repository.get_connection")
    def test_database_error_raises_persistence_error(self, mock_get_conn: MagicMock) -> None:
        mock_conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.execute.side_effect = psycopg.OperationalError("connection lost")

        with pytest.raises(PersistenceError, match=f"Could not store record {FILE_ID}"):
            ProvenanceRepository().insert(_make_record())
        mock_conn.commit.assert_not_called()


class TestFindByFileId:
    @patch("cleanshare.database.repositories.provenance_repository.get_connection")
    def test_returns_record_when_found(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = _make_row()

        record = ProvenanceRepository().find_by_file_id(FILE_ID)

        assert isinstance(record, ProvenanceRecord)
        assert record.file_id == FILE_ID
        assert record.size == 2048
        assert record.fingerprint == "a" * 64
        assert record.content_identifier is None
        assert record.original_metadata == {"Make": "Canon"}
        assert record.cleaned_metadata == {}

    @patch("cleanshare.database.repositories.provenance_repository.get_connection")
    def test_raises_record_not_found_when_missing(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = None

        with pytest.raises(RecordNotFoundError, match="Record missing-id not found"):
            ProvenanceRepository().find_by_file_id("missing-id")


class TestFindByHash:
    @patch("cleanshare.database.repositories.provenance_repository.get_connection")
    def test_returns_all_matching_records(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchall.return_value = [_make_row(), _make_row()]

        records = ProvenanceRepository().find_by_hash("a" * 64)

        assert len(records) == 2
        sql, params = mock_cursor.execute.call_args.args
        assert "ORDER BY created_at" in sql
        assert params == ("a" * 64,)

    @patch("cleanshare.database.repositories.provenance_repository.get_connection")
    def test_returns_empty_list_when_unknown(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchall.return_value = []

        assert ProvenanceRepository().find_by_hash("f" * 64) == []


class TestProvenanceRecord:
    def test_rejects_unknown_status(self) -> None:
        with pytest.raises(ValueError, match="Invalid record status"):
            ProvenanceRecord(
                file_id=FILE_ID,
                original_name="a.txt",
                mime_type="text/plain",
                size=1,
                storage_path="/x",
                fingerprint="a" * 64,
                owner="alice",
                status="archived",
                cleaned=False,
                created_at=CREATED_AT,
            )

    def test_to_dict_is_json_safe(self) -> None:
        data = _make_record().to_dict()

        assert data["fileId"] == FILE_ID
        assert data["createdAt"] == "2026-01-02T03:04:05+00:00"
        assert data["originalMetadata"] == {"Make": "Canon", "Thumbnail": "base64:AAE="}
