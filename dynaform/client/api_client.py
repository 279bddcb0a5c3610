"""
HTTP client for the form backend.

Wraps the three backend calls the form runtime depends on: fetching a
form version, posting a submission and uploading a file. Failures are
raised as FormLoadError / SubmissionError / UploadError carrying the
HTTP status code when there is one.
"""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from dynaform.config import ApiConfig
from dynaform.core.errors import FormLoadError, SubmissionError, UploadError
from dynaform.core.form_state import FormSession
from dynaform.core.schema import FileHandle, FormVersion
from dynaform.core.submission import encode_json_body, encode_multipart_body, has_file_values

logger = logging.getLogger(__name__)

_JSON_HEADERS = {"Accept": "application/json"}


def _build_safe_curl(request: httpx.Request) -> str:
    """Build a debug curl command with sensitive headers redacted."""
    curl = f"curl -X {request.method} '{request.url}'"
    for key, value in request.headers.items():
        header_value = value
        if key.lower() in {"authorization", "x-api-key", "api-key", "cookie"}:
            header_value = "[REDACTED]"
        curl += f" -H '{key}: {header_value}'"

    try:
        content = request.content
    except httpx.RequestNotRead:
        # Multipart bodies are streamed and not available here
        return curl + " -d '[STREAM]'"

    if content:
        body = content.decode(errors="ignore")
        max_body_chars = 2000
        if len(body) > max_body_chars:
            body = body[:max_body_chars] + "... [TRUNCATED]"
        curl += f" -d '{body}'"
    return curl


class CurlLoggingAsyncClient(httpx.AsyncClient):
    """AsyncClient that logs every request as a sanitized curl command."""

    def __init__(self, *args, log_curl: bool = False, **kwargs):
        super().__init__(*args, **kwargs)
        self.log_curl = log_curl

    async def send(self, request, *args, **kwargs):
        if self.log_curl:
            logger.info("CURL (sanitized): %s", _build_safe_curl(request))
        return await super().send(request, *args, **kwargs)


def build_http_client(config: ApiConfig) -> httpx.AsyncClient:
    return CurlLoggingAsyncClient(timeout=config.timeout_seconds, log_curl=config.log_curl)


def _unwrap_data(body: Any) -> Any:
    """Backends may wrap documents as {"data": ...}."""
    if isinstance(body, dict) and body.get("data") is not None:
        return body["data"]
    return body


class FormApiClient:
    """Async client for the form backend.

    Args:
        config: The API configuration (base URL, timeout).
        http_client: Optional preconfigured httpx client. When omitted the
            client builds and owns one.
    """

    def __init__(self, config: ApiConfig, http_client: httpx.AsyncClient | None = None):
        self.config = config
        self._http = http_client or build_http_client(config)
        self._owns_http = http_client is None

    async def __aenter__(self) -> "FormApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    # -----------------------------------------------------------------
    # URLs
    # -----------------------------------------------------------------

    def version_url(self, version_id: int | str) -> str:
        return f"{self.config.root}/form-versions/{version_id}"

    def submissions_url(self, version_id: int | str) -> str:
        return f"{self.version_url(version_id)}/submissions"

    def uploads_url(self, version_id: int | str) -> str:
        return f"{self.version_url(version_id)}/uploads"

    # -----------------------------------------------------------------
    # Calls
    # -----------------------------------------------------------------

    async def fetch_form_version(self, version_id: int | str) -> FormVersion:
        """Fetch and validate a form version.

        Raises:
            FormLoadError: On transport failure, a non-2xx status, or a
                body that is not a valid form version.
        """
        url = self.version_url(version_id)
        try:
            response = await self._http.get(url, headers=_JSON_HEADERS)
        except httpx.HTTPError as e:
            raise FormLoadError(f"Request failed: {e}") from e

        if not response.is_success:
            raise FormLoadError(
                f"Request failed with status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            document = _unwrap_data(response.json())
            version = FormVersion.model_validate(document)
        except ValueError as e:
            # json.JSONDecodeError and pydantic.ValidationError are both ValueErrors
            count = e.error_count() if isinstance(e, ValidationError) else 1
            raise FormLoadError(
                f"Invalid form version document ({count} error(s))",
                status_code=response.status_code,
            ) from e

        logger.info(
            "Loaded form version %s (%d sections, %d rules)",
            version.id,
            len(version.sections),
            len(version.config.conditional_logic),
        )
        return version

    async def submit(self, version_id: int | str, payload: dict[str, Any]) -> Any:
        """Post a submission payload, as multipart when it carries files.

        Returns:
            The decoded response body, or None when it is empty or not JSON.

        Raises:
            SubmissionError: On transport failure or a non-2xx status.
        """
        url = self.submissions_url(version_id)
        try:
            if has_file_values(payload):
                data, files = encode_multipart_body(payload)
                response = await self._http.post(url, data=data, files=files)
            else:
                response = await self._http.post(
                    url,
                    json=encode_json_body(payload),
                    headers=_JSON_HEADERS,
                )
        except httpx.HTTPError as e:
            raise SubmissionError(f"Submission failed: {e}") from e

        if not response.is_success:
            raise SubmissionError(
                f"Submission failed with status {response.status_code}",
                status_code=response.status_code,
            )

        logger.info("Submitted form version %s (%d fields)", version_id, len(payload))
        try:
            return response.json() if response.content else None
        except ValueError:
            return None

    async def upload_file(self, version_id: int | str, field_id: str, file: FileHandle) -> str:
        """Upload one file for a field and return its identifier.

        Raises:
            UploadError: On transport failure, a non-2xx status, or a
                response without an identifier.
        """
        url = self.uploads_url(version_id)
        try:
            response = await self._http.post(
                url,
                data={"field_id": field_id},
                files={"file": (file.filename, file.content, file.content_type)},
                headers=_JSON_HEADERS,
            )
        except httpx.HTTPError as e:
            raise UploadError(field_id, f"Upload failed: {e}") from e

        if not response.is_success:
            raise UploadError(
                field_id,
                f"Upload failed with status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = _unwrap_data(response.json())
        except ValueError:
            body = None
        identifier = body.get("id") if isinstance(body, dict) else None
        if identifier is None:
            raise UploadError(field_id, "Upload response did not include a file id")
        return str(identifier)


async def submit_session(form: FormSession, client: FormApiClient) -> bool:
    """Validate a form session and submit its visible values.

    Validation and submission failures are recorded on the session; the
    values stay in place so the user can fix them and retry.

    Returns:
        True if the backend accepted the submission.
    """
    if not form.validate():
        logger.info("Submission blocked by %d validation error(s)", len(form.errors))
        return False

    form.mark_submitting()
    try:
        await client.submit(form.version.id, form.build_payload())
    except SubmissionError as e:
        logger.warning("Submission for version %s failed: %s", form.version.id, e.message)
        form.mark_failed(e.message)
        return False

    form.mark_succeeded()
    return True
