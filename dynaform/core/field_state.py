"""
Field-state derivation for conditional form logic.

Computes, from the sections, the form config, the current values and the
schema-declared required flags, which fields are visible and which are
required. The result is always derived fresh, never patched, so it is a
pure projection of its inputs.

Derivation runs in two phases:

1. Defaults: every declared field is visible and keeps its declared
   required flag. Every field targeted by any `show_field` action is then
   forced hidden, whatever the order of the rules.
2. Evaluation: rules run in declaration order. Each condition is
   evaluated once and its actions apply in order, so a later write to
   the same target overwrites an earlier one.
"""

import logging
from typing import Any

from pydantic import BaseModel, Field

from dynaform.core.conditions import evaluate_condition
from dynaform.core.schema import (
    ActionType,
    ConditionalAction,
    ConditionalRule,
    FormConfig,
    FormField,
    FormSection,
)

logger = logging.getLogger(__name__)


class FieldState(BaseModel):
    """Visibility and required flags keyed by field id."""

    visibility: dict[str, bool] = Field(default_factory=dict)
    required: dict[str, bool] = Field(default_factory=dict)

    def is_visible(self, field_id: str) -> bool:
        """Fields without an explicit entry default to visible."""
        return self.visibility.get(field_id) is not False

    def is_required(self, field_id: str) -> bool:
        return bool(self.required.get(field_id, False))


# -----------------------------------------------------------------
# Schema projections
# -----------------------------------------------------------------


def flatten_fields(sections: list[FormSection]) -> list[FormField]:
    """Return every field of every section, in schema order."""
    return [field for section in sections for field in section.fields]


def compute_base_required(fields: list[FormField]) -> dict[str, bool]:
    """Map each field id to its schema-declared required flag."""
    return {
        field.id: bool(field.validations and field.validations.required)
        for field in fields
    }


def collect_show_controlled_fields(rules: list[ConditionalRule]) -> set[str]:
    """Return the ids targeted by at least one `show_field` action.

    These fields start hidden until a matching rule shows them. Targets
    need not be declared in any section.
    """
    return {
        action.target_field
        for rule in rules
        for action in rule.actions
        if action.type == ActionType.SHOW_FIELD
    }


# -----------------------------------------------------------------
# Derivation
# -----------------------------------------------------------------


def derive_field_state(
    sections: list[FormSection],
    config: FormConfig | None,
    values: dict[str, Any],
    base_required: dict[str, bool],
) -> FieldState:
    """Derive visibility and required flags for the current values.

    Args:
        sections: The form sections.
        config: The form config holding the conditional rules (may be None).
        values: Snapshot of the current form values keyed by field ID.
        base_required: Schema-declared required flags keyed by field ID.

    Returns:
        A new FieldState. Both maps cover every declared field id; rule
        targets that are not declared may appear as extra entries.
    """
    rules = config.conditional_logic if config is not None else []

    # Phase 1: defaults
    visibility = {field.id: True for field in flatten_fields(sections)}
    required = dict(base_required)

    for field_id in collect_show_controlled_fields(rules):
        visibility[field_id] = False

    # Phase 2: ordered evaluation
    for rule in rules:
        matches = evaluate_condition(rule.condition, values)
        for action in rule.actions:
            _apply_action(action, matches, visibility, required)

    return FieldState(visibility=visibility, required=required)


def _apply_action(
    action: ConditionalAction,
    matches: bool,
    visibility: dict[str, bool],
    required: dict[str, bool],
) -> None:
    """Apply one action of a rule whose condition evaluated to `matches`.

    A non-matching rule leaves every flag untouched. For `set_required`
    this means the flag is not reverted to its declared value.
    """
    if not matches:
        return

    match action.type:
        case ActionType.SHOW_FIELD:
            visibility[action.target_field] = True

        case ActionType.HIDE_FIELD:
            visibility[action.target_field] = False

        case ActionType.SET_REQUIRED:
            required[action.target_field] = (
                bool(action.value) if action.has_value else True
            )

        case _:
            logger.debug(
                "Ignoring unknown action type %r for target '%s'",
                action.type,
                action.target_field,
            )


def project_visible_fields(
    fields: list[FormField],
    visibility: dict[str, bool],
) -> set[str]:
    """Return the ids of fields that are currently visible.

    Fields with no visibility entry default to visible.
    """
    return {
        field.id for field in fields
        if visibility.get(field.id) is not False
    }
