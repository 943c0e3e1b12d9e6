"""
Turn the many shapes HubSpot returns into one canonical form.

Schemas come out as {id, name, fields[]}, rows as flat {column: display string}.
Nothing in here raises on malformed input: a missing or oddly typed piece
degrades to "" / [] and the caller decides whether the endpoint was supported.
"""
import json

from schema import RAW_SUBMITTED_AT, SUBMISSION_PREFIX, contact_prefix


# -------------------------------------------------------------------
# Values
# -------------------------------------------------------------------
def display_value(value) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def _dict(x) -> dict:
    return x if isinstance(x, dict) else {}


def _list(x) -> list:
    return x if isinstance(x, list) else []


def _first(d: dict, *keys):
    for k in keys:
        v = d.get(k)
        if v not in (None, ""):
            return v
    return None


# -------------------------------------------------------------------
# Fields
# -------------------------------------------------------------------
def normalize_field(raw, with_id: bool = False) -> dict:
    raw = _dict(raw)
    name = display_value(raw.get("name"))
    field = {
        "name": name,
        "label": display_value(_first(raw, "label", "placeholder")) or name,
        "type": display_value(_first(raw, "fieldType", "type")),
    }
    if with_id:
        field["id"] = display_value(raw.get("id"))
    return field


def _grouped(container_key: str):
    def match(form: dict) -> list:
        fields = []
        for group in _list(form.get(container_key)):
            fields.extend(_list(_dict(group).get("fields")))
        return fields
    match.__name__ = f"match_{container_key}"
    return match


def match_flat_fields(form: dict) -> list:
    return _list(form.get("fields"))


def match_post_submit_actions(form: dict) -> list:
    fields = []
    for action in _list(_dict(form.get("configuration")).get("postSubmitActions")):
        fields.extend(_list(_dict(action).get("fields")))
    return fields


# Tried in order; the first matcher returning anything wins, results are never merged
FORM_FIELD_MATCHERS = (
    _grouped("fieldGroups"),        # marketing v3
    _grouped("formFieldGroups"),    # legacy v2
    match_flat_fields,
    match_post_submit_actions,
)


def extract_form_fields(form, matchers=FORM_FIELD_MATCHERS) -> list:
    form = _dict(form)
    for match in matchers:
        raw_fields = match(form)
        if raw_fields:
            return [normalize_field(f) for f in raw_fields]
    return []


def extract_table_fields(table) -> list:
    return [normalize_field(col, with_id=True) for col in _list(_dict(table).get("columns"))]


# -------------------------------------------------------------------
# Entities
# -------------------------------------------------------------------
def normalize_form(raw, default_id: str = "", default_name: str = "Untitled form") -> dict:
    raw = _dict(raw)
    return {
        "id": display_value(_first(raw, "id", "guid")) or default_id,
        "name": display_value(raw.get("name")) or default_name,
        "fields": extract_form_fields(raw),
    }


def normalize_table(raw, default_id: str = "", default_name: str = "Untitled table") -> dict:
    raw = _dict(raw)
    row_count = raw.get("rowCount")
    return {
        "id": display_value(raw.get("id")) or default_id,
        "name": display_value(_first(raw, "name", "label")) or default_name,
        "rowCount": row_count if isinstance(row_count, int) else 0,
        "fields": extract_table_fields(raw),
    }


# -------------------------------------------------------------------
# Rows
# -------------------------------------------------------------------
def table_row(raw) -> dict:
    raw = _dict(raw)
    row = {"id": display_value(raw.get("id"))}
    for key, value in _dict(raw.get("values")).items():
        row[key] = display_value(value)
    for key in ("createdAt", "updatedAt"):
        if key in raw:
            row[key] = display_value(raw[key])
    return row


def submission_row(raw) -> dict:
    """
    values can be [{"name": "email", "value": "a@b.com"}] or
    [{"name": "interests", "values": ["a", "b"]}]; some payloads carry a
    plain `properties` map instead.
    """
    raw = _dict(raw)
    row = {}
    if isinstance(raw.get("values"), list):
        for v in raw["values"]:
            v = _dict(v)
            key = display_value(v.get("name"))
            if not key:
                continue
            if "value" in v:
                row[key] = display_value(v["value"])
            elif isinstance(v.get("values"), list):
                row[key] = ", ".join(display_value(x) for x in v["values"])
            else:
                row[key] = display_value(v.get("values"))
    else:
        for key, value in _dict(raw.get("properties")).items():
            row[key] = display_value(value)

    for key in SUBMISSION_PREFIX:
        row[key] = display_value(raw.get(key))
    row[RAW_SUBMITTED_AT] = raw.get("submittedAt")
    return row


def sort_submissions(rows: list) -> list:
    """
    Newest first by the raw submission timestamp, then drop the sort key.
    Stable: equal timestamps keep upstream order.
    """
    def key(row):
        raw = row.get(RAW_SUBMITTED_AT)
        return display_value(raw if raw is not None else row.get("submittedAt"))

    ordered = sorted(rows, key=key, reverse=True)
    return [{k: v for k, v in row.items() if k != RAW_SUBMITTED_AT} for row in ordered]


def contact_row(raw, custom_properties=()) -> dict:
    raw = _dict(raw)
    props = _dict(raw.get("properties"))
    pinned = contact_prefix(custom_properties)

    row = {"id": display_value(raw.get("id") or props.get("hs_object_id"))}
    for key in pinned[1:]:
        row[key] = display_value(props.get(key))
    for key, value in props.items():
        if key not in row:
            row[key] = display_value(value)
    return row
