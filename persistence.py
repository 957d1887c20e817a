"""
Supabase-backed history of analysed resumes.

Public methods never raise: failures are logged and reported through
``None``/``False``/empty sentinels so callers can fall back to local state.
The ``try_*`` methods raise PersistenceError and are used where the error
details matter (tests, diagnostics).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from supabase import Client, create_client

from data_models import AnalysisResult, FilePayload, HistoryRecord

LOGGER = logging.getLogger(__name__)

RESUMES_TABLE = "resumes"
RESUMES_BUCKET = "resumes"
HISTORY_LIMIT = 50
# PostgREST refuses an unfiltered DELETE; every real id differs from this one.
NIL_UUID = "00000000-0000-0000-0000-000000000000"


class PersistenceError(RuntimeError):
    """Raised by the ``try_*`` methods when the hosted store fails."""


def _timestamp_ms(created_at: Optional[str]) -> int:
    if not created_at:
        return int(datetime.now(timezone.utc).timestamp() * 1000)
    parsed = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


def storage_path_from_url(file_url: str) -> str:
    """Extract ``userId/recordId.ext`` from a public storage URL."""
    parts = [part for part in urlparse(file_url).path.split("/") if part]
    if len(parts) < 2:
        raise PersistenceError(f"Not a storage URL: {file_url}")
    return "/".join(parts[-2:])


def record_from_row(row: Dict[str, Any]) -> HistoryRecord:
    file_data = row.get("file_data")
    return HistoryRecord(
        id=str(row["id"]),
        timestamp=_timestamp_ms(row.get("created_at")),
        file_name=row.get("file_name", ""),
        analysis=AnalysisResult.from_dict(row["analysis"]),
        resume=FilePayload.from_dict(file_data) if file_data else None,
        file_url=row.get("file_url"),
    )


class HistoryGateway:
    """Reads and writes resume records in a Supabase table and bucket."""

    def __init__(
        self,
        client: Client,
        table: str = RESUMES_TABLE,
        bucket: str = RESUMES_BUCKET,
        limit: int = HISTORY_LIMIT,
    ) -> None:
        self.client = client
        self.table = table
        self.bucket = bucket
        self.limit = limit

    @classmethod
    def from_settings(cls, settings) -> Optional["HistoryGateway"]:
        """Create a gateway, or return None when credentials are missing."""
        if not settings.persistence_enabled:
            return None
        try:
            client = create_client(settings.supabase_url, settings.supabase_key)
        except Exception as exc:
            LOGGER.error("Failed to create Supabase client: %s", exc)
            return None
        return cls(client, settings.resumes_table, settings.resumes_bucket, settings.history_limit)

    def _rows(self):
        return self.client.table(self.table)

    def _files(self):
        return self.client.storage.from_(self.bucket)

    # ------------------------------------------------------------------
    # Storage

    def try_upload_file(self, payload: FilePayload, user_id: str, record_id: str) -> str:
        """
        Upload the original resume bytes.

        Returns:
            Public URL of the uploaded object.
        """
        file_path = f"{user_id}/{record_id}.{payload.extension}"
        LOGGER.debug("Attempting storage upload: %s (%d bytes)", file_path, payload.size)
        try:
            self._files().upload(
                file_path,
                payload.raw_bytes(),
                {"content-type": payload.mime_type, "cache-control": "3600", "upsert": "false"},
            )
            public_url = self._files().get_public_url(file_path)
        except Exception as exc:
            raise PersistenceError(f"Storage upload failed for {file_path}: {exc}") from exc
        LOGGER.info("Storage upload success: %s", file_path)
        return public_url

    def download_file(self, file_url: str) -> Optional[bytes]:
        """
        Fetch an uploaded resume.

        Args:
            file_url: Public URL returned by the upload.

        Returns:
            The file bytes, or None if the download failed.
        """
        try:
            return self._files().download(storage_path_from_url(file_url))
        except Exception as exc:
            LOGGER.error("Error downloading file %s: %s", file_url, exc)
            return None

    def delete_file(self, file_url: str) -> bool:
        try:
            self._files().remove([storage_path_from_url(file_url)])
        except Exception as exc:
            LOGGER.error("Error deleting file %s: %s", file_url, exc)
            return False
        return True

    # ------------------------------------------------------------------
    # Records

    def try_save(self, payload: FilePayload, analysis: AnalysisResult, user_id: Optional[str] = None) -> HistoryRecord:
        """
        Insert a record, then attach the file by URL or inline.

        The file is uploaded to ``{user_id}/{record_id}.{ext}`` when a user is
        known. Without a user, or when the upload fails, the base64 payload is
        embedded in the row instead.

        A failed follow-up update is only logged; the inserted record is
        still returned.

        Raises:
            PersistenceError: If the insert fails.
        """
        record = {
            "file_name": payload.original_name,
            "file_type": payload.mime_type,
            "analysis": analysis.to_dict(),
            "user_id": user_id,
        }
        try:
            response = self._rows().insert(record).execute()
        except Exception as exc:
            raise PersistenceError(f"Error saving resume: {exc}") from exc
        if not response.data:
            raise PersistenceError("Insert returned no row")
        row = response.data[0]
        record_id = str(row["id"])

        file_url = None
        if user_id:
            try:
                file_url = self.try_upload_file(payload, user_id, record_id)
            except PersistenceError as exc:
                LOGGER.error("Storage upload failed, falling back to base64: %s", exc)

        update = {"file_url": file_url, "file_size": payload.size} if file_url else {"file_data": payload.to_dict()}
        try:
            self._rows().update(update).eq("id", record_id).execute()
        except Exception as exc:
            LOGGER.error("Error attaching file to resume %s: %s", record_id, exc)

        return HistoryRecord(
            id=record_id,
            timestamp=_timestamp_ms(row.get("created_at")),
            file_name=row.get("file_name", payload.original_name),
            analysis=analysis,
            resume=payload,
            file_url=file_url,
        )

    def save(self, payload: FilePayload, analysis: AnalysisResult, user_id: Optional[str] = None) -> Optional[HistoryRecord]:
        """
        Save an analysis without raising.

        Args:
            payload: Resume file that was analysed.
            analysis: Result to store.
            user_id: Owner of the record, if known.

        Returns:
            The saved record, or None when the insert failed.
        """
        try:
            record = self.try_save(payload, analysis, user_id)
        except PersistenceError as exc:
            LOGGER.error("%s", exc)
            return None
        LOGGER.info("Saved resume %s as record %s", payload.original_name, record.id)
        return record

    def try_list(self, user_id: Optional[str] = None) -> List[HistoryRecord]:
        try:
            query = self._rows().select("*").order("created_at", desc=True).limit(self.limit)
            if user_id:
                query = query.eq("user_id", user_id)
            response = query.execute()
            return [record_from_row(row) for row in response.data or []]
        except Exception as exc:
            raise PersistenceError(f"Error fetching resumes: {exc}") from exc

    def list(self, user_id: Optional[str] = None) -> List[HistoryRecord]:
        """Return up to ``limit`` records, newest first."""
        try:
            return self.try_list(user_id)
        except PersistenceError as exc:
            LOGGER.error("%s", exc)
            return []

    def try_get(self, record_id: str) -> Optional[HistoryRecord]:
        try:
            response = self._rows().select("*").eq("id", record_id).limit(1).execute()
        except Exception as exc:
            raise PersistenceError(f"Error fetching resume {record_id}: {exc}") from exc
        rows = response.data or []
        return record_from_row(rows[0]) if rows else None

    def get(self, record_id: str) -> Optional[HistoryRecord]:
        try:
            return self.try_get(record_id)
        except PersistenceError as exc:
            LOGGER.error("%s", exc)
            return None

    def count(self, user_id: Optional[str] = None) -> int:
        """Number of stored records, optionally for one user; 0 on failure."""
        try:
            query = self._rows().select("id", count="exact", head=True)
            if user_id:
                query = query.eq("user_id", user_id)
            response = query.execute()
        except Exception as exc:
            LOGGER.error("Error counting resumes: %s", exc)
            return 0
        return response.count or 0

    def delete(self, record_id: str) -> bool:
        """
        Delete one record.

        Args:
            record_id: Row id to remove.

        Returns:
            True when the delete request succeeded.
        """
        try:
            self._rows().delete().eq("id", record_id).execute()
        except Exception as exc:
            LOGGER.error("Error deleting resume %s: %s", record_id, exc)
            return False
        return True

    def clear_all(self, user_id: Optional[str] = None) -> bool:
        """Delete every record owned by ``user_id``, or every record when None."""
        try:
            query = self._rows().delete()
            query = query.eq("user_id", user_id) if user_id else query.neq("id", NIL_UUID)
            query.execute()
        except Exception as exc:
            LOGGER.error("Error clearing resumes: %s", exc)
            return False
        LOGGER.info("Cleared resume history%s", f" for user {user_id}" if user_id else "")
        return True
