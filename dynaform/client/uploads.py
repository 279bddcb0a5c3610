"""
Concurrent file uploads for file and image fields.

Each field uploads independently: a failure empties that field and
records an error for it without disturbing uploads of other fields.
Files of a multi-file field upload concurrently and keep their order.
"""

import asyncio
import logging
from typing import Any

from dynaform.client.api_client import FormApiClient
from dynaform.core.errors import UploadError
from dynaform.core.form_state import FormSession
from dynaform.core.schema import FieldType, FileHandle, FormField

logger = logging.getLogger(__name__)

UPLOAD_FAILED_MESSAGE = "The file could not be uploaded"


def _file_handles(value: Any) -> list[FileHandle]:
    if isinstance(value, FileHandle):
        return [value]
    if isinstance(value, (list, tuple)):
        return [item for item in value if isinstance(item, FileHandle)]
    return []


class UploadCoordinator:
    """Uploads the files held by a form session.

    Args:
        client: The API client used for uploads.
    """

    def __init__(self, client: FormApiClient):
        self._client = client

    async def upload_field(
        self,
        version_id: int | str,
        field: FormField,
        files: list[FileHandle],
    ) -> tuple[Any, str | None]:
        """Upload all files of one field.

        Any failed file fails the field. Cancellation is not a failure and
        propagates.

        Returns:
            A tuple of (value, error). On success the value is the list of
            identifiers for a multiple field, or the single identifier.
            On failure it is (None, message).
        """
        results = await asyncio.gather(
            *(self._client.upload_file(version_id, field.id, f) for f in files),
            return_exceptions=True,
        )

        for result in results:
            if isinstance(result, Exception):
                _log_upload_failure(field.id, result)
                return None, UPLOAD_FAILED_MESSAGE
            if isinstance(result, BaseException):
                raise result

        identifiers = list(results)
        if field.is_multiple:
            return identifiers, None
        return (identifiers[0] if identifiers else None), None

    async def upload_session_files(self, form: FormSession) -> dict[str, str]:
        """Upload every file currently held by the session's file fields.

        Values are replaced by identifiers on success and cleared on
        failure. Every field gets its outcome written, whatever happens
        to its siblings.

        Returns:
            The upload errors keyed by field ID (empty when all succeeded).
        """
        pending = [
            (field, _file_handles(form.get_value(field.id)))
            for field in form.fields
            if field.kind in (FieldType.FILE, FieldType.IMAGE)
        ]
        pending = [(field, files) for field, files in pending if files]
        if not pending:
            return {}

        outcomes = await asyncio.gather(
            *(self.upload_field(form.version.id, field, files) for field, files in pending),
            return_exceptions=True,
        )

        errors: dict[str, str] = {}
        cancelled: BaseException | None = None
        for (field, _files), outcome in zip(pending, outcomes):
            if isinstance(outcome, Exception):
                _log_upload_failure(field.id, outcome)
                value, error = None, UPLOAD_FAILED_MESSAGE
            elif isinstance(outcome, BaseException):
                cancelled = outcome
                continue
            else:
                value, error = outcome
            form.set_upload_result(field.id, value, error)
            if error is not None:
                errors[field.id] = error

        logger.info(
            "Uploaded files for %d field(s), %d failed",
            len(pending),
            len(errors),
        )
        if cancelled is not None:
            raise cancelled
        return errors


def _log_upload_failure(field_id: str, exc: Exception) -> None:
    if isinstance(exc, UploadError):
        logger.warning("Upload for field '%s' failed: %s", field_id, exc.message)
    else:
        logger.error("Unexpected upload failure for field '%s': %r", field_id, exc)
