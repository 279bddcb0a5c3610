"""
FastAPI routes for the Dynaform service.

Endpoints:
- POST   /sessions                         - open a form version in a new session
- GET    /sessions/{session_id}            - current session view
- PATCH  /sessions/{session_id}/values     - apply value changes
- POST   /sessions/{session_id}/fields/{field_id}/toggle - check/uncheck a checkbox option
- POST   /sessions/{session_id}/reset      - restore initial values
- POST   /sessions/{session_id}/validate   - check visible required fields
- POST   /sessions/{session_id}/files/{field_id} - attach (or upload) files
- POST   /sessions/{session_id}/submit     - validate and submit
- DELETE /sessions/{session_id}            - drop a session
- GET    /health                           - health check
"""

import logging
from typing import Any

from fastapi import APIRouter, File, HTTPException, UploadFile
from pydantic import BaseModel

from dynaform.client.api_client import FormApiClient, submit_session
from dynaform.client.loader import FormLoader
from dynaform.client.uploads import UploadCoordinator
from dynaform.core.controls import coerce_input
from dynaform.core.schema import FieldType, FileHandle
from dynaform.core.session import Session, SessionStore

logger = logging.getLogger(__name__)

router = APIRouter()

# These will be injected by the app factory
_session_store: SessionStore | None = None
_api_client: FormApiClient | None = None


def configure_routes(session_store: SessionStore, api_client: FormApiClient) -> None:
    """Inject the session store and backend client into the routes module.

    Called by the app factory during startup.
    """
    global _session_store, _api_client
    _session_store = session_store
    _api_client = api_client


# --- Request Models ---


class CreateSessionRequest(BaseModel):
    """Request body for POST /sessions."""

    version_id: int | str


class UpdateValuesRequest(BaseModel):
    """Request body for PATCH /sessions/{session_id}/values."""

    values: dict[str, Any]
    coerce: bool = True


class ToggleOptionRequest(BaseModel):
    """Request body for POST /sessions/{session_id}/fields/{field_id}/toggle."""

    value: Any
    checked: bool = True


# --- Helpers ---


def _require_configured() -> tuple[SessionStore, FormApiClient]:
    if _session_store is None or _api_client is None:
        raise HTTPException(status_code=500, detail="Server not properly configured")
    return _session_store, _api_client


def _get_session_or_404(session_id: str) -> Session:
    store, _ = _require_configured()
    session = store.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return session


def _session_view(session_id: str, session: Session) -> dict[str, Any]:
    return {"session_id": session_id, **session.form.to_view()}


# --- Endpoints ---


@router.post("/sessions")
async def create_session(request: CreateSessionRequest):
    """Fetch a form version and open a session seeded with its defaults."""
    store, client = _require_configured()

    loader = FormLoader(client)
    version = await loader.load(request.version_id)
    if version is None:
        raise HTTPException(
            status_code=502,
            detail={
                "message": f"Could not load form version: {loader.error}",
                "status_code": loader.status_code,
            },
        )

    session_id, session = store.create_session(version)
    logger.info("Opened session %s for form version %s", session_id, version.id)
    return _session_view(session_id, session)


@router.get("/sessions/{session_id}")
async def get_session(session_id: str):
    session = _get_session_or_404(session_id)
    return _session_view(session_id, session)


@router.patch("/sessions/{session_id}/values")
async def update_values(session_id: str, request: UpdateValuesRequest):
    """Apply one or more value changes and return the re-derived view."""
    session = _get_session_or_404(session_id)
    _, rejected = session.form.set_values_bulk(request.values, coerce=request.coerce)
    view = _session_view(session_id, session)
    view["rejected"] = rejected
    return view


@router.post("/sessions/{session_id}/fields/{field_id}/toggle")
async def toggle_option(session_id: str, field_id: str, request: ToggleOptionRequest):
    """Check or uncheck one option of a checkbox group field."""
    session = _get_session_or_404(session_id)
    form = session.form

    field = form.get_field(field_id)
    if field is None:
        raise HTTPException(status_code=404, detail=f"Field '{field_id}' not found")
    if field.kind != FieldType.CHECKBOX_GROUP:
        raise HTTPException(status_code=400, detail=f"Field '{field_id}' is not a checkbox group")

    form.toggle_option(field_id, request.value, request.checked)
    return _session_view(session_id, session)


@router.post("/sessions/{session_id}/reset")
async def reset_session(session_id: str):
    session = _get_session_or_404(session_id)
    session.form.reset()
    return _session_view(session_id, session)


@router.post("/sessions/{session_id}/validate")
async def validate_session(session_id: str):
    session = _get_session_or_404(session_id)
    valid = session.form.validate()
    return {"valid": valid, "errors": dict(session.form.errors)}


@router.post("/sessions/{session_id}/files/{field_id}")
async def attach_files(
    session_id: str,
    field_id: str,
    files: list[UploadFile] = File(...),
    upload: bool = False,
):
    """Attach files to a file/image field.

    With `upload=true` the files are uploaded right away and the field
    holds the returned identifiers; otherwise the files are kept and sent
    with the submission.
    """
    session = _get_session_or_404(session_id)
    _, client = _require_configured()
    form = session.form

    field = form.get_field(field_id)
    if field is None:
        raise HTTPException(status_code=404, detail=f"Field '{field_id}' not found")
    if field.kind not in (FieldType.FILE, FieldType.IMAGE):
        raise HTTPException(status_code=400, detail=f"Field '{field_id}' does not accept files")

    handles = [
        FileHandle(
            filename=f.filename or "upload",
            content=await f.read(),
            content_type=f.content_type or "application/octet-stream",
        )
        for f in files
    ]

    if upload:
        coordinator = UploadCoordinator(client)
        value, error = await coordinator.upload_field(form.version.id, field, handles)
        form.set_upload_result(field_id, value, error)
    else:
        form.set_value(field_id, coerce_input(field, handles))

    return _session_view(session_id, session)


@router.post("/sessions/{session_id}/submit")
async def submit(session_id: str):
    """Validate and submit the visible values of a session.

    Validation errors answer 422 with the error map. A failed submission
    keeps the values and reports the error in the response body.
    """
    session = _get_session_or_404(session_id)
    _, client = _require_configured()
    form = session.form

    accepted = await submit_session(form, client)
    if not accepted and form.errors:
        raise HTTPException(
            status_code=422,
            detail={"message": "Some required fields are empty", "errors": dict(form.errors)},
        )

    return {
        "status": form.submit_state.value,
        "message": form.submit_message,
        "session": _session_view(session_id, session),
    }


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str):
    """Delete a form session."""
    store, _ = _require_configured()
    deleted = store.delete_session(session_id)
    return {
        "success": deleted,
        "message": "Session deleted" if deleted else "Session not found",
    }


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    session_count = _session_store.count() if _session_store else 0
    return {
        "status": "healthy",
        "active_sessions": session_count,
    }
