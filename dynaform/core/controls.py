"""
Control protocol: one input control per field kind.

Each field kind maps to exactly one control type. The presentation
layer reads the control dict and renders the matching widget; raw input
coming back from that widget is normalized here before it is stored in
the form values.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any

from dynaform.core.schema import FieldOption, FieldType, FileHandle, FormField
from dynaform.core.utils import is_number, parse_date, strict_equals

DEFAULT_TEXTAREA_ROWS = 4
SELECT_PLACEHOLDER = "Select an option"


# --- Control Type Enum ---


class ControlType(str, Enum):
    """All supported input controls."""

    TEXT_INPUT = "TEXT_INPUT"
    NUMBER_INPUT = "NUMBER_INPUT"
    SELECT = "SELECT"
    CHECKBOX_GROUP = "CHECKBOX_GROUP"
    DATE_INPUT = "DATE_INPUT"
    FILE_INPUT = "FILE_INPUT"
    TEXTAREA = "TEXTAREA"
    SWITCH = "SWITCH"


# --- Mapping from FieldType to ControlType ---

_FIELD_TYPE_TO_CONTROL: dict[FieldType, ControlType] = {
    FieldType.TEXT: ControlType.TEXT_INPUT,
    FieldType.NUMBER: ControlType.NUMBER_INPUT,
    FieldType.SELECT: ControlType.SELECT,
    FieldType.CHECKBOX_GROUP: ControlType.CHECKBOX_GROUP,
    FieldType.DATE: ControlType.DATE_INPUT,
    FieldType.FILE: ControlType.FILE_INPUT,
    FieldType.IMAGE: ControlType.FILE_INPUT,
    FieldType.TEXTAREA: ControlType.TEXTAREA,
    FieldType.SWITCH: ControlType.SWITCH,
    FieldType.OTHER: ControlType.TEXT_INPUT,
}

_TRUTHY_STRINGS = {"1", "true", "yes", "on"}


def control_type_for_field(field: FormField) -> ControlType:
    return _FIELD_TYPE_TO_CONTROL[field.kind]


# -----------------------------------------------------------------
# Control builder
# -----------------------------------------------------------------


def build_control_for_field(
    field: FormField,
    value: Any = None,
    required: bool = False,
    error: str | None = None,
) -> dict:
    """Build the control dict for a given form field.

    Maps the field kind to its control type and adds the kind-specific
    presentation keys (options, placeholder, bounds, rows, file flags).

    Args:
        field: The form field to describe.
        value: The current value of the field.
        required: The derived required flag.
        error: The current error message for the field, if any.

    Returns:
        A JSON-serializable dict describing the control.
    """
    control_type = control_type_for_field(field)
    props = field.props

    control = {
        "control": control_type.value,
        "field_id": field.id,
        "field_type": field.kind.value,
        "label": field.display_label,
        "required": required,
        "value": describe_value(value),
        "error": error,
    }

    if field.grid_width is not None:
        control["grid_width"] = field.grid_width

    placeholder = field.placeholder or (props.placeholder if props else None)

    match control_type:
        case ControlType.SELECT:
            control["options"] = _describe_options(field.options)
            control["placeholder"] = SELECT_PLACEHOLDER
        case ControlType.CHECKBOX_GROUP:
            control["options"] = _describe_options(field.options)
        case ControlType.TEXTAREA:
            control["placeholder"] = placeholder
            control["rows"] = props.rows if props and props.rows else DEFAULT_TEXTAREA_ROWS
        case ControlType.NUMBER_INPUT:
            control["placeholder"] = placeholder
            if props:
                control["min"] = props.min
                control["max"] = props.max
                control["step"] = props.step
        case ControlType.FILE_INPUT:
            control["multiple"] = field.is_multiple
            control["accept"] = props.accept if props else None
            if props and props.max_size_mb is not None:
                control["max_size_mb"] = props.max_size_mb
        case ControlType.SWITCH:
            pass
        case _:
            control["placeholder"] = placeholder

    return control


def _describe_options(options: list[FieldOption] | None) -> list[dict]:
    return [{"label": o.label, "value": o.value} for o in options or []]


def describe_value(value: Any) -> Any:
    """Make a form value JSON-safe; file handles become their metadata."""
    if isinstance(value, FileHandle):
        return {
            "filename": value.filename,
            "content_type": value.content_type,
            "size": value.size,
        }
    if isinstance(value, (list, tuple)):
        return [describe_value(item) for item in value]
    return value


# -----------------------------------------------------------------
# Input coercion per field kind
# -----------------------------------------------------------------


def coerce_input(field: FormField, raw: Any) -> Any:
    """Normalize a raw value coming from the field's control.

    Args:
        field: The form field the input belongs to.
        raw: The raw value as produced by the widget.

    Returns:
        The value to store in the form values.
    """
    match field.kind:
        case FieldType.NUMBER:
            return _coerce_number(raw)
        case FieldType.SELECT:
            return _coerce_select(field, raw)
        case FieldType.CHECKBOX_GROUP:
            return _coerce_checkbox_group(field, raw)
        case FieldType.SWITCH:
            return _coerce_switch(raw)
        case FieldType.DATE:
            return _coerce_date(raw)
        case FieldType.FILE | FieldType.IMAGE:
            return _coerce_file(field, raw)
        case _:
            return _coerce_text(raw)


def _coerce_text(raw: Any) -> Any:
    """Empty text is stored as None."""
    if raw is None or raw == "":
        return None
    return raw if isinstance(raw, str) else str(raw)


def _coerce_number(raw: Any) -> Any:
    """Numbers are parsed from strings; unparseable input is kept as typed."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        return int(raw)
    if is_number(raw):
        return raw
    text = str(raw).strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return raw


def _option_key(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _match_option(field: FormField, raw: Any) -> Any:
    """Return the typed option value whose string form matches raw."""
    key = _option_key(raw)
    for option in field.options or []:
        if _option_key(option.value) == key:
            return option.value
    return raw


def _coerce_select(field: FormField, raw: Any) -> Any:
    if raw is None or raw == "":
        return None
    return _match_option(field, raw)


def _coerce_checkbox_group(field: FormField, raw: Any) -> list:
    if raw is None:
        return []
    items = raw if isinstance(raw, (list, tuple)) else [raw]
    return [_match_option(field, item) for item in items]


def _coerce_switch(raw: Any) -> bool:
    if isinstance(raw, str):
        return raw.strip().lower() in _TRUTHY_STRINGS
    return bool(raw)


def _coerce_date(raw: Any) -> Any:
    """Dates are stored as ISO strings (YYYY-MM-DD) when parseable."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return raw.date().isoformat()
    if isinstance(raw, date):
        return raw.isoformat()
    parsed = parse_date(raw) if isinstance(raw, str) else None
    return parsed.isoformat() if parsed is not None else raw


def _coerce_file(field: FormField, raw: Any) -> Any:
    """Single-file fields hold one handle; multiple-file fields hold a list."""
    if raw is None:
        return None
    handles = list(raw) if isinstance(raw, (list, tuple)) else [raw]
    if field.is_multiple:
        return handles
    return handles[0] if handles else None


def toggle_option(current: Any, option_value: Any, checked: bool) -> list:
    """Add or remove one option value from a checkbox group value.

    Args:
        current: The current field value (a list, or anything else for empty).
        option_value: The option being toggled.
        checked: Whether the option is now checked.

    Returns:
        A new list; the current value is never mutated.
    """
    selected = list(current) if isinstance(current, (list, tuple)) else []
    if checked:
        if not any(strict_equals(item, option_value) for item in selected):
            selected.append(option_value)
        return selected
    return [item for item in selected if not strict_equals(item, option_value)]
