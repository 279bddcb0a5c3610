"""
Initial values for a freshly loaded form version.
"""

from typing import Any

from dynaform.core.schema import FieldType, FormField


def default_value_for_field(field: FormField) -> Any:
    """Return the declared default, or False for switches and None otherwise."""
    declared = field.props.default_value if field.props else None
    if declared is not None:
        return declared
    return False if field.kind == FieldType.SWITCH else None


def build_default_values(fields: list[FormField]) -> dict[str, Any]:
    """Build the initial values map, keyed by field id in schema order."""
    return {field.id: default_value_for_field(field) for field in fields}
