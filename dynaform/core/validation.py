"""
Required-field validation scoped to the derived field state.

Only fields that are both visible and required are checked. Hidden or
optional fields are never flagged, whatever value they hold.
"""

from typing import Any

from dynaform.core.field_state import FieldState
from dynaform.core.schema import FormField
from dynaform.core.utils import is_empty_value

REQUIRED_FIELD_MESSAGE = "This field is required"


def validate_required(
    fields: list[FormField],
    field_state: FieldState,
    values: dict[str, Any],
) -> dict[str, str]:
    """Check every visible, required field for an empty value.

    Args:
        fields: All form fields, in schema order.
        field_state: The derived visibility/required flags.
        values: Current form values keyed by field ID.

    Returns:
        A dict of {field_id: error_message}. Empty when the form is valid.
    """
    errors: dict[str, str] = {}

    for field in fields:
        if not field_state.is_visible(field.id) or not field_state.is_required(field.id):
            continue
        if is_empty_value(values.get(field.id)):
            errors[field.id] = REQUIRED_FIELD_MESSAGE

    return errors
