"""
Form session state for one form being filled in.

Manages the current state of a form-filling session:
- Current and pristine values, seeded from schema defaults
- Derived visibility/required flags for the current values
- Which fields are visible (and therefore validated and submitted)
- Per-field validation and upload errors
- Submit state and config-driven copy
"""

import copy
import logging
from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any

from dynaform.core.controls import (
    build_control_for_field,
    coerce_input,
    describe_value,
    toggle_option,
)
from dynaform.core.defaults import build_default_values
from dynaform.core.field_state import (
    FieldState,
    compute_base_required,
    derive_field_state,
    flatten_fields,
    project_visible_fields,
)
from dynaform.core.schema import FieldType, FormField, FormVersion
from dynaform.core.submission import build_submission_payload
from dynaform.core.validation import validate_required

logger = logging.getLogger(__name__)

DEFAULT_SUBMIT_BUTTON_TEXT = "Submit"
SUBMITTING_BUTTON_TEXT = "Submitting..."
DEFAULT_SUCCESS_MESSAGE = "Form submitted successfully"
DEFAULT_SUBMIT_ERROR_MESSAGE = "The form could not be submitted"


class SubmitState(str, Enum):
    """Lifecycle of the submit action."""

    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


class FormSession:
    """Holds the values and derived state of a single form session.

    The session is the only writer of its values. Field state is derived
    from a snapshot of the values on first access after a change, so a
    burst of changes costs one derivation and the state read afterwards
    always matches the latest values.

    Args:
        version: A validated FormVersion instance.
    """

    def __init__(self, version: FormVersion):
        self.version = version
        self.fields: list[FormField] = flatten_fields(version.sections)
        self._fields_by_id = {field.id: field for field in self.fields}
        self.base_required: dict[str, bool] = compute_base_required(self.fields)

        self.initial_values: dict[str, Any] = build_default_values(self.fields)
        self._values: dict[str, Any] = copy.deepcopy(self.initial_values)

        self.errors: dict[str, str] = {}
        self.upload_errors: dict[str, str] = {}
        self.submit_state = SubmitState.IDLE
        self.submit_message = ""

        self._revision = 0
        self._derived: tuple[int, FieldState] | None = None

    # -----------------------------------------------------------------
    # Derived state
    # -----------------------------------------------------------------

    @property
    def field_state(self) -> FieldState:
        """Visibility and required flags for the current values."""
        if self._derived is None or self._derived[0] != self._revision:
            state = derive_field_state(
                self.version.sections,
                self.version.config,
                dict(self._values),
                self.base_required,
            )
            self._derived = (self._revision, state)
        return self._derived[1]

    @property
    def visible_fields(self) -> set[str]:
        """Ids of the fields that currently take part in validation and submission."""
        return project_visible_fields(self.fields, self.field_state.visibility)

    def get_field(self, field_id: str) -> FormField | None:
        return self._fields_by_id.get(field_id)

    # -----------------------------------------------------------------
    # Value management
    # -----------------------------------------------------------------

    @property
    def values(self) -> Mapping[str, Any]:
        """Read-only copy of the current values.

        Edits made to the copy (including in-place list edits) never
        reach the session; use set_value, apply_input or toggle_option.
        """
        return MappingProxyType(copy.deepcopy(self._values))

    def get_value(self, field_id: str) -> Any:
        return copy.deepcopy(self._values.get(field_id))

    def set_value(self, field_id: str, value: Any) -> None:
        """Store a value and clear the field's errors.

        Args:
            field_id: The field ID being edited.
            value: The new value.

        Raises:
            ValueError: If the field_id does not exist in the schema.
        """
        if field_id not in self._fields_by_id:
            raise ValueError(f"Field '{field_id}' does not exist in the schema")

        self._values[field_id] = copy.deepcopy(value)
        self.errors.pop(field_id, None)
        self.upload_errors.pop(field_id, None)
        self._revision += 1

    def apply_input(self, field_id: str, raw: Any) -> Any:
        """Coerce raw widget input for the field's kind, then store it.

        Returns:
            The stored value.

        Raises:
            ValueError: If the field_id does not exist in the schema.
        """
        field = self.get_field(field_id)
        if field is None:
            raise ValueError(f"Field '{field_id}' does not exist in the schema")
        value = coerce_input(field, raw)
        self.set_value(field_id, value)
        return value

    def set_values_bulk(
        self,
        values: dict[str, Any],
        coerce: bool = False,
    ) -> tuple[dict[str, Any], dict[str, str]]:
        """Apply several edits at once, skipping unknown fields.

        Args:
            values: Dict of {field_id: value} pairs to set.
            coerce: Whether to run each value through its control coercion.

        Returns:
            A tuple of (accepted, rejected) where:
            - accepted: {field_id: stored_value} for applied edits
            - rejected: {field_id: error_message} for unknown fields
        """
        accepted: dict[str, Any] = {}
        rejected: dict[str, str] = {}

        for field_id, value in values.items():
            try:
                if coerce:
                    accepted[field_id] = self.apply_input(field_id, value)
                else:
                    self.set_value(field_id, value)
                    accepted[field_id] = value
            except ValueError as e:
                rejected[field_id] = str(e)

        return accepted, rejected

    def toggle_option(self, field_id: str, option_value: Any, checked: bool) -> list:
        """Check or uncheck one option of a checkbox group.

        The option value is matched against the field's options the same
        way raw input is, so "2" toggles the option whose value is 2.

        Returns:
            The stored list.

        Raises:
            ValueError: If the field does not exist or is not a checkbox group.
        """
        field = self.get_field(field_id)
        if field is None:
            raise ValueError(f"Field '{field_id}' does not exist in the schema")
        if field.kind != FieldType.CHECKBOX_GROUP:
            raise ValueError(f"Field '{field_id}' is not a checkbox group")

        typed_value = coerce_input(field, [option_value])[0]
        selected = toggle_option(self._values.get(field_id), typed_value, checked)
        self.set_value(field_id, selected)
        return list(selected)

    def reset(self) -> None:
        """Restore every field to its initial value and clear all errors."""
        self._values = copy.deepcopy(self.initial_values)
        self.errors = {}
        self.upload_errors = {}
        self.submit_state = SubmitState.IDLE
        self.submit_message = ""
        self._revision += 1

    def set_upload_result(self, field_id: str, value: Any, error: str | None = None) -> None:
        """Store the outcome of a file upload for a field.

        A failed upload empties the field and records a field-scoped error.
        """
        if error is not None:
            self.set_value(field_id, None)
            self.upload_errors[field_id] = error
            logger.warning("Upload failed for field '%s': %s", field_id, error)
            return
        self.set_value(field_id, value)

    # -----------------------------------------------------------------
    # Validation and submission
    # -----------------------------------------------------------------

    def validate(self) -> bool:
        """Check visible required fields; store and report the outcome."""
        self.errors = validate_required(self.fields, self.field_state, self._values)
        return not self.errors

    def build_payload(self) -> dict[str, Any]:
        """Values of the visible fields, in schema order."""
        return build_submission_payload(self.fields, self.visible_fields, self._values)

    def mark_submitting(self) -> None:
        self.submit_state = SubmitState.SUBMITTING
        self.submit_message = ""

    def mark_succeeded(self) -> None:
        self.submit_state = SubmitState.SUCCESS
        self.submit_message = self.success_message

    def mark_failed(self, message: str | None = None) -> None:
        """Record a failed submission. Values are kept for a retry."""
        self.submit_state = SubmitState.ERROR
        self.submit_message = message or DEFAULT_SUBMIT_ERROR_MESSAGE

    @property
    def submit_button_text(self) -> str:
        if self.submit_state == SubmitState.SUBMITTING:
            return SUBMITTING_BUTTON_TEXT
        settings = self.version.config.submission_settings
        return settings.submit_button_text or DEFAULT_SUBMIT_BUTTON_TEXT

    @property
    def success_message(self) -> str:
        settings = self.version.config.submission_settings
        return settings.success_message or DEFAULT_SUCCESS_MESSAGE

    # -----------------------------------------------------------------
    # Presentation
    # -----------------------------------------------------------------

    def describe_sections(self) -> list[dict]:
        """Sections with one control dict per visible field."""
        state = self.field_state
        sections = []
        for section in self.version.sections:
            controls = [
                build_control_for_field(
                    field,
                    value=self._values.get(field.id),
                    required=state.is_required(field.id),
                    error=self.errors.get(field.id) or self.upload_errors.get(field.id),
                )
                for field in section.fields
                if state.is_visible(field.id)
            ]
            sections.append({
                "id": section.id,
                "title": section.title,
                "description": section.description,
                "fields": controls,
            })
        return sections

    def to_view(self) -> dict[str, Any]:
        """A JSON-safe snapshot of the session for the presentation layer."""
        state = self.field_state
        return {
            "version_id": self.version.id,
            "form_title": self.version.form_title,
            "sections": self.describe_sections(),
            "visibility": dict(state.visibility),
            "required": dict(state.required),
            "values": {k: describe_value(v) for k, v in self._values.items()},
            "errors": dict(self.errors),
            "upload_errors": dict(self.upload_errors),
            "submit_state": self.submit_state.value,
            "submit_message": self.submit_message,
            "submit_button_text": self.submit_button_text,
        }
