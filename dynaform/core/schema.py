"""
Form version schema and conditional logic models.

These Pydantic models define the contract between the form backend and
this runtime. A FormVersion is fetched once per version id and is the
single source of truth for sections, fields, and conditional rules.
"""

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


# --- Enums ---


class FieldType(str, Enum):
    """Supported form field kinds.

    Any other type string sent by the backend is kept verbatim on the
    field and handled as OTHER (a plain text input).
    """

    TEXT = "text"
    NUMBER = "number"
    SELECT = "select"
    CHECKBOX_GROUP = "checkbox_group"
    DATE = "date"
    FILE = "file"
    IMAGE = "image"
    TEXTAREA = "textarea"
    SWITCH = "switch"
    OTHER = "other"


class ConditionOperator(str, Enum):
    """Operators a rule condition can apply to its trigger field."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    CONTAINS = "contains"


class ActionType(str, Enum):
    """Effects a matching rule can apply to its target field."""

    SHOW_FIELD = "show_field"
    HIDE_FIELD = "hide_field"
    SET_REQUIRED = "set_required"


# --- Field Models ---


class FieldOption(BaseModel):
    """A selectable option for select and checkbox_group fields."""

    label: str
    value: str | int | float | bool


class FieldValidation(BaseModel):
    """Static validation flags declared by the schema.

    Only `required` is evaluated here; the remaining keys are carried
    for presentation and are enforced by the backend.
    """

    model_config = ConfigDict(extra="allow")

    required: bool | None = None
    min: float | None = None
    max: float | None = None
    pattern: str | None = None
    min_length: int | None = None
    max_length: int | None = None
    email: bool | None = None


class FieldProps(BaseModel):
    """Open bag of presentation properties, including the default value."""

    model_config = ConfigDict(extra="allow")

    placeholder: str | None = None
    min: float | None = None
    max: float | None = None
    step: float | None = None
    multiple: bool | None = None
    accept: str | None = None
    rows: int | None = None
    max_size_mb: float | None = None
    default_value: Any = None
    prefix: str | None = None
    suffix: str | None = None


class FormField(BaseModel):
    """Definition of a single form field."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(
        ...,
        min_length=1,
        description="Unique field identifier within the form version",
    )
    type: FieldType | str = Field(
        default=FieldType.TEXT,
        union_mode="left_to_right",
        description="Field kind; unknown strings are kept and rendered as text",
    )
    label: str | None = None
    grid_width: int | None = None
    placeholder: str | None = None
    options: list[FieldOption] | None = None
    validations: FieldValidation | None = None
    props: FieldProps | None = None

    @property
    def kind(self) -> FieldType:
        """The closed field kind used to pick a control strategy."""
        if isinstance(self.type, FieldType):
            return self.type
        return FieldType.OTHER

    @property
    def display_label(self) -> str:
        return self.label or self.id

    @property
    def is_multiple(self) -> bool:
        return bool(self.props and self.props.multiple)


class FormSection(BaseModel):
    """An ordered group of fields. Grouping has no effect on rules."""

    id: str | int | None = None
    title: str = ""
    description: str | None = None
    fields: list[FormField] = Field(default_factory=list)


# --- Conditional Logic Models ---


class ConditionalCondition(BaseModel):
    """The single trigger test of a rule."""

    trigger_field: str = Field(
        ...,
        description="Field id whose current value is tested",
    )
    operator: ConditionOperator | str = Field(
        ...,
        union_mode="left_to_right",
        description="Comparison operator; unknown operators never match",
    )
    value: Any = Field(
        default=None,
        description="Comparison value",
    )


class ConditionalAction(BaseModel):
    """One effect of a rule. The target may reference an undeclared field."""

    type: ActionType | str = Field(..., union_mode="left_to_right")
    target_field: str
    value: Any = None

    @property
    def has_value(self) -> bool:
        """Whether `value` was present in the payload (null counts as present)."""
        return "value" in self.model_fields_set


class ConditionalRule(BaseModel):
    """A condition plus the ordered actions applied when it matches."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | int | None = None
    description: str | None = None
    condition: ConditionalCondition = Field(
        ...,
        validation_alias=AliasChoices("condition", "conditions"),
    )
    actions: list[ConditionalAction] = Field(default_factory=list)


# --- Config Models ---


class SubmissionSettings(BaseModel):
    """Copy and routing for the submit step."""

    model_config = ConfigDict(extra="allow")

    submit_button_text: str | None = None
    success_message: str | None = None
    redirect_url: str | None = None


class FormConfig(BaseModel):
    """Behavioral configuration of a form version."""

    model_config = ConfigDict(extra="allow")

    conditional_logic: list[ConditionalRule] = Field(default_factory=list)
    submission_settings: SubmissionSettings = Field(default_factory=SubmissionSettings)

    @model_validator(mode="before")
    @classmethod
    def replace_nulls(cls, data: Any) -> Any:
        """Treat explicit nulls for the list/settings keys as absent."""
        if isinstance(data, dict):
            data = {k: v for k, v in data.items() if not (
                k in ("conditional_logic", "submission_settings") and v is None
            )}
        return data


class UISettings(BaseModel):
    """Presentation settings of the form."""

    model_config = ConfigDict(extra="allow")

    form_title: str | None = None
    layout_variant: str | None = None


class FormDefinition(BaseModel):
    """The `schema` document of a form version: ordered sections."""

    ui_settings: UISettings | None = None
    sections: list[FormSection] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_unique_field_ids(self) -> "FormDefinition":
        """Field ids must be unique across all sections."""
        seen: set[str] = set()
        for section in self.sections:
            for f in section.fields:
                if f.id in seen:
                    raise ValueError(f"Duplicate field ID: '{f.id}'")
                seen.add(f.id)
        return self


# --- Top-Level Form Version ---


class FormVersion(BaseModel):
    """A published version of a form, as served by the backend."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: int | str
    definition: FormDefinition = Field(
        default_factory=FormDefinition,
        validation_alias=AliasChoices("schema", "definition"),
        serialization_alias="schema",
    )
    config: FormConfig = Field(default_factory=FormConfig)

    @model_validator(mode="before")
    @classmethod
    def replace_null_config(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("config") is None:
            data = {k: v for k, v in data.items() if k != "config"}
        return data

    @property
    def sections(self) -> list[FormSection]:
        return self.definition.sections

    @property
    def form_title(self) -> str:
        ui = self.definition.ui_settings
        return (ui.form_title if ui and ui.form_title else None) or "Form"


# --- Value Types ---


class FileHandle(BaseModel):
    """A file chosen for a file/image field, held in memory until submit."""

    filename: str
    content: bytes = b""
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)
