"""
Submission payload building and body encoding.

The payload only ever contains currently visible fields. It is sent as
JSON unless it carries at least one file, in which case it is encoded as
multipart form data using `payload[<field_id>]` keys.
"""

import json
from typing import Any

from dynaform.core.schema import FileHandle, FormField

# httpx multipart file tuple: (filename, content, content_type)
FileTuple = tuple[str, bytes, str]


def build_submission_payload(
    fields: list[FormField],
    visible_ids: set[str],
    values: dict[str, Any],
) -> dict[str, Any]:
    """Collect the values of visible fields, in schema order.

    Args:
        fields: All form fields, in schema order.
        visible_ids: Ids of the currently visible fields.
        values: Current form values keyed by field ID.

    Returns:
        A dict of {field_id: value} for visible fields that hold a value entry.
    """
    return {
        field.id: values[field.id]
        for field in fields
        if field.id in visible_ids and field.id in values
    }


def has_file_values(payload: dict[str, Any]) -> bool:
    """True if any value is a file handle or a list holding one."""
    for value in payload.values():
        if isinstance(value, FileHandle):
            return True
        if isinstance(value, (list, tuple)) and any(isinstance(v, FileHandle) for v in value):
            return True
    return False


def encode_json_body(payload: dict[str, Any]) -> dict[str, Any]:
    """Wrap the payload for a JSON submission."""
    return {"payload": payload}


def encode_multipart_body(
    payload: dict[str, Any],
) -> tuple[dict[str, str | list[str]], list[tuple[str, FileTuple]]]:
    """Encode the payload as multipart form fields and files.

    Scalars go under `payload[id]`, list items one by one under
    `payload[id][]`, and files are attached under the same keys.
    None values are omitted.

    Args:
        payload: The visible-field payload.

    Returns:
        A (data, files) tuple ready to pass to httpx.
    """
    data: dict[str, str | list[str]] = {}
    files: list[tuple[str, FileTuple]] = []

    for field_id, value in payload.items():
        key = f"payload[{field_id}]"

        if isinstance(value, FileHandle):
            files.append((key, _file_tuple(value)))
        elif isinstance(value, (list, tuple)):
            list_key = f"{key}[]"
            items: list[str] = []
            for item in value:
                if isinstance(item, FileHandle):
                    files.append((list_key, _file_tuple(item)))
                else:
                    items.append(form_string(item))
            if items:
                data[list_key] = items
        elif value is not None:
            data[key] = form_string(value)

    return data, files


def form_string(value: Any) -> str:
    """Render a scalar as a multipart string value."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _file_tuple(handle: FileHandle) -> FileTuple:
    return (handle.filename, handle.content, handle.content_type)
