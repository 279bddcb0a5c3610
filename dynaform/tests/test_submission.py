"""
Unit tests for submission payload building and body encoding.

Tests cover:
- Payload contains visible fields only, in schema order
- File detection (single handle and lists of handles)
- JSON body wraps the payload and keeps arrays as arrays
- Multipart body: scalars, repeated array keys, files, None omitted
- Scalar rendering for multipart strings
"""

from dynaform.core.schema import FileHandle, FormField
from dynaform.core.submission import (
    build_submission_payload,
    encode_json_body,
    encode_multipart_body,
    form_string,
    has_file_values,
)


# --- Helpers ---


def make_fields(*ids: str) -> list[FormField]:
    return [FormField(id=field_id) for field_id in ids]


# =============================================================
# Test: build_submission_payload
# =============================================================


class TestBuildSubmissionPayload:
    """Tests for visible-field payload scoping."""

    def test_only_visible_fields(self):
        fields = make_fields("a", "b", "c")
        payload = build_submission_payload(fields, {"a", "c"}, {"a": 1, "b": 2, "c": 3})
        assert payload == {"a": 1, "c": 3}

    def test_schema_order(self):
        fields = make_fields("z", "a", "m")
        payload = build_submission_payload(fields, {"a", "m", "z"}, {"a": 1, "m": 2, "z": 3})
        assert list(payload) == ["z", "a", "m"]

    def test_none_values_kept(self):
        payload = build_submission_payload(make_fields("a"), {"a"}, {"a": None})
        assert payload == {"a": None}

    def test_fields_without_value_entry_skipped(self):
        payload = build_submission_payload(make_fields("a", "b"), {"a", "b"}, {"a": "x"})
        assert payload == {"a": "x"}

    def test_undeclared_values_never_sent(self):
        payload = build_submission_payload(make_fields("a"), {"a", "ghost"}, {"a": 1, "ghost": 2})
        assert payload == {"a": 1}


# =============================================================
# Test: has_file_values
# =============================================================


class TestHasFileValues:
    """Tests for file detection."""

    def test_no_files(self):
        assert has_file_values({"a": "x", "b": ["y"], "c": None}) is False

    def test_single_file(self):
        assert has_file_values({"a": FileHandle(filename="a.txt")}) is True

    def test_list_of_files(self):
        assert has_file_values({"a": [FileHandle(filename="a.txt")]}) is True

    def test_uploaded_identifiers_are_not_files(self):
        assert has_file_values({"a": ["id-1", "id-2"]}) is False


# =============================================================
# Test: JSON body
# =============================================================


class TestJsonBody:
    """Tests for the JSON submission body."""

    def test_wraps_payload(self):
        assert encode_json_body({"a": 1}) == {"payload": {"a": 1}}

    def test_array_stays_array(self):
        body = encode_json_body({"tags": ["a", "b"]})
        assert body["payload"]["tags"] == ["a", "b"]


# =============================================================
# Test: Multipart body
# =============================================================


class TestMultipartBody:
    """Tests for the multipart submission body."""

    def test_array_as_repeated_keys(self):
        data, files = encode_multipart_body({"tags": ["a", "b"]})
        assert data == {"payload[tags][]": ["a", "b"]}
        assert files == []

    def test_array_items_stringified(self):
        data, _ = encode_multipart_body({"sizes": [1, 2.0, True]})
        assert data == {"payload[sizes][]": ["1", "2", "true"]}

    def test_scalars(self):
        data, _ = encode_multipart_body({"name": "Ada", "age": 36, "agree": False})
        assert data == {
            "payload[name]": "Ada",
            "payload[age]": "36",
            "payload[agree]": "false",
        }

    def test_none_omitted(self):
        data, files = encode_multipart_body({"empty": None})
        assert data == {}
        assert files == []

    def test_empty_array_omitted(self):
        data, _ = encode_multipart_body({"tags": []})
        assert data == {}

    def test_single_file(self):
        handle = FileHandle(filename="cv.pdf", content=b"%PDF", content_type="application/pdf")
        data, files = encode_multipart_body({"cv": handle, "name": "Ada"})
        assert files == [("payload[cv]", ("cv.pdf", b"%PDF", "application/pdf"))]
        assert data == {"payload[name]": "Ada"}

    def test_multiple_files_keep_order(self):
        handles = [FileHandle(filename="a.png"), FileHandle(filename="b.png")]
        _, files = encode_multipart_body({"shots": handles})
        assert [(key, f[0]) for key, f in files] == [
            ("payload[shots][]", "a.png"),
            ("payload[shots][]", "b.png"),
        ]


class TestFormString:
    """Tests for multipart scalar rendering."""

    def test_values(self):
        assert form_string(None) == ""
        assert form_string(True) == "true"
        assert form_string(3.0) == "3"
        assert form_string(3.5) == "3.5"
        assert form_string({"a": 1}) == '{"a": 1}'
        assert form_string("x") == "x"
