"""
Unit tests for required-field validation and default values.

Tests cover:
- Empty values: None, missing, "", [] flag visible required fields
- Non-empty falsy values (0, False, " ") pass
- Hidden and optional fields are never validated
- Full error map, not fail-fast
- Rule-driven required flags
- Default values per field kind
"""

from dynaform.core.defaults import build_default_values, default_value_for_field
from dynaform.core.field_state import FieldState, flatten_fields
from dynaform.core.form_state import FormSession
from dynaform.core.schema import FormField
from dynaform.core.validation import REQUIRED_FIELD_MESSAGE, validate_required


# --- Helpers ---


def make_fields(*ids: str) -> list[FormField]:
    return [FormField(id=field_id) for field_id in ids]


def all_visible_required(*ids: str) -> FieldState:
    return FieldState(
        visibility={i: True for i in ids},
        required={i: True for i in ids},
    )


# =============================================================
# Test: validate_required
# =============================================================


class TestValidateRequired:
    """Tests for validate_required."""

    def test_empty_values_flagged(self):
        fields = make_fields("none", "missing", "blank", "empty_list")
        state = all_visible_required("none", "missing", "blank", "empty_list")
        errors = validate_required(fields, state, {"none": None, "blank": "", "empty_list": []})
        assert errors == {
            "none": REQUIRED_FIELD_MESSAGE,
            "missing": REQUIRED_FIELD_MESSAGE,
            "blank": REQUIRED_FIELD_MESSAGE,
            "empty_list": REQUIRED_FIELD_MESSAGE,
        }

    def test_falsy_but_present_values_pass(self):
        fields = make_fields("zero", "false", "space", "list")
        state = all_visible_required("zero", "false", "space", "list")
        values = {"zero": 0, "false": False, "space": " ", "list": ["a"]}
        assert validate_required(fields, state, values) == {}

    def test_hidden_required_empty_field_not_flagged(self):
        fields = make_fields("hidden")
        state = FieldState(visibility={"hidden": False}, required={"hidden": True})
        assert validate_required(fields, state, {"hidden": None}) == {}

    def test_optional_empty_field_not_flagged(self):
        fields = make_fields("optional")
        state = FieldState(visibility={"optional": True}, required={"optional": False})
        assert validate_required(fields, state, {}) == {}

    def test_missing_required_entry_means_optional(self):
        fields = make_fields("f")
        state = FieldState(visibility={"f": True}, required={})
        assert validate_required(fields, state, {}) == {}

    def test_missing_visibility_entry_means_visible(self):
        fields = make_fields("f")
        state = FieldState(visibility={}, required={"f": True})
        assert validate_required(fields, state, {}) == {"f": REQUIRED_FIELD_MESSAGE}

    def test_all_errors_reported(self):
        fields = make_fields("a", "b", "c")
        state = all_visible_required("a", "b", "c")
        errors = validate_required(fields, state, {"b": "filled"})
        assert set(errors) == {"a", "c"}

    def test_dangling_state_entries_ignored(self):
        fields = make_fields("a")
        state = FieldState(
            visibility={"a": True, "ghost": True},
            required={"a": False, "ghost": True},
        )
        assert validate_required(fields, state, {}) == {}

    def test_rule_driven_required(self, support_version):
        """Uses derived state from the support_request rules."""
        form = FormSession(support_version)
        form.set_values_bulk({
            "full_name": "Ada",
            "email": "ada@example.com",
            "category": "billing",
            "description": "Charged twice",
        })
        errors = validate_required(form.fields, form.field_state, form.values)
        assert errors == {"invoice_number": REQUIRED_FIELD_MESSAGE}


# =============================================================
# Test: Default values
# =============================================================


class TestDefaultValues:
    """Tests for default-value initialization."""

    def test_switch_defaults_to_false(self):
        assert default_value_for_field(FormField(id="s", type="switch")) is False

    def test_switch_declared_default(self):
        field = FormField(id="s", type="switch", props={"default_value": True})
        assert default_value_for_field(field) is True

    def test_other_kinds_default_to_none(self):
        for field_type in ("text", "number", "select", "checkbox_group", "date",
                           "file", "image", "textarea", "promo_code"):
            assert default_value_for_field(FormField(id="f", type=field_type)) is None

    def test_declared_defaults_kept_exactly(self):
        assert default_value_for_field(
            FormField(id="n", type="number", props={"default_value": 0})
        ) == 0
        assert default_value_for_field(
            FormField(id="c", type="checkbox_group", props={"default_value": ["a"]})
        ) == ["a"]
        assert default_value_for_field(
            FormField(id="t", type="text", props={"default_value": ""})
        ) == ""

    def test_build_default_values(self, support_version):
        defaults = build_default_values(flatten_fields(support_version.sections))
        assert defaults["contact_by_phone"] is False
        assert defaults["severity"] == 3
        assert defaults["full_name"] is None
        assert list(defaults) == [f.id for f in flatten_fields(support_version.sections)]
