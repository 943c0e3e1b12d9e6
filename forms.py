"""
HubSpot forms: the form list, one form's fields, its submissions (cursor
paged) and the CRM contacts that submitted it (offset paged search).

Every function here swallows HubSpotError and hands back either an empty
result with a reason code or a supported=False page.
"""
import logging
from urllib.parse import quote

from columns import backfill, union_columns
from config import CONTACT_CUSTOM_PROPERTIES, LIST_LIMIT, PAGE_SIZE, SUBMISSIONS_API_SORT
from hubspot_client import HubSpotError, UnsupportedEndpoint, UpstreamUnavailable, expect_container
from normalize import contact_row, normalize_form, sort_submissions, submission_row
from paging import cursor_paging, offset_paging, supported_page, unsupported_page
from schema import SUBMISSION_INTERNAL, SUBMISSION_PREFIX, contact_prefix, contact_search_properties

logger = logging.getLogger(__name__)

FORMS_V3 = "/marketing/v3/forms"
FORMS_V2 = "/forms/v2/forms"
SUBMISSIONS = "/form-integrations/v1/submissions/forms"
CONTACTS_SEARCH = "/crm/v3/objects/contacts/search"

SUBMISSIONS_UNSUPPORTED = (
    "Form submissions API not available in this account or token scope. "
    "You can still validate forms & fields."
)
CONTACTS_UNSUPPORTED = (
    "Contacts search API failed. Check token permissions and that the contact "
    "property hs_calculated_form_submissions is available."
)


def _fetch(client, path: str, query: dict | None, accept):
    """
    Body of one GET when it succeeded and `accept(body)` holds, else None.
    Transport failures count as a miss so the caller can fall back;
    a missing token is raised.
    """
    try:
        r = client.get(path, query)
    except UpstreamUnavailable:
        return None
    if not r.ok or not accept(r.data):
        return None
    return r.data


def _has_results(data) -> bool:
    return isinstance(data, dict) and isinstance(data.get("results"), list)


# -------------------------------------------------------------------
# Forms
# -------------------------------------------------------------------
def list_forms(client, limit: int = LIST_LIMIT):
    """
    Marketing v3 first, legacy v2 if that fails.
    Returns (forms, reason); reason is None unless both calls failed.
    """
    try:
        data = _fetch(client, FORMS_V3, {"limit": limit}, _has_results)
        if data is not None:
            return [normalize_form(f) for f in data["results"]], None

        logger.warning("v3 forms API failed, falling back to v2")
        data = _fetch(client, FORMS_V2, None, lambda d: isinstance(d, list))
        if data is not None:
            return [normalize_form(f) for f in data], None
    except HubSpotError as e:
        logger.warning("listing forms failed: %s", e.reason)
        return [], e.reason

    logger.warning("v2 forms API also failed")
    return [], "upstream_error"


def get_form(client, form_id: str):
    """Returns (form, reason); the form degrades to no fields rather than raising."""
    path = quote(form_id, safe="")
    try:
        data = _fetch(client, f"{FORMS_V3}/{path}", None, lambda d: isinstance(d, dict))
        if data is not None:
            return normalize_form(data, default_id=form_id, default_name=""), None

        logger.info("trying v2 form details for %s", form_id)
        data = _fetch(client, f"{FORMS_V2}/{path}", None, lambda d: isinstance(d, dict))
        if data is not None:
            form = normalize_form(data, default_id=form_id, default_name="")
            form["id"] = form_id
            return form, None
    except HubSpotError as e:
        return {"id": form_id, "name": "", "fields": []}, e.reason

    logger.warning("no form details found for %s", form_id)
    return {"id": form_id, "name": "", "fields": []}, "upstream_error"


# -------------------------------------------------------------------
# Submissions (cursor)
# -------------------------------------------------------------------
def _int_or_none(x):
    return x if isinstance(x, int) and not isinstance(x, bool) else None


def get_submissions(client, form_id: str, limit: int = PAGE_SIZE, after: str | None = None,
                    page: int | None = None, api_sort: bool = SUBMISSIONS_API_SORT) -> dict:
    """
    One page of submissions, newest first.
    `page` is the caller's own page counter (cursor stack depth + 1); without
    it we can only tell page 1 from "not page 1".
    """
    page = page or (2 if after else 1)
    query = {"limit": limit}
    if after:
        query["after"] = after
    if api_sort:
        query["sort"] = "-submittedAt"

    try:
        r = client.get(f"{SUBMISSIONS}/{quote(form_id, safe='')}", query)
        results = expect_container(r, "results", "submissions")
    except UnsupportedEndpoint as e:
        logger.warning("submissions for %s unsupported: %s", form_id, e)
        return unsupported_page(SUBMISSIONS_UNSUPPORTED, "cursor", limit)
    except HubSpotError as e:
        return unsupported_page(e.message, "cursor", limit, reason=e.reason)

    data = r.data
    paging_block = data.get("paging") if isinstance(data.get("paging"), dict) else {}
    next_block = paging_block.get("next") if isinstance(paging_block.get("next"), dict) else {}
    next_cursor = next_block.get("after")
    total = _int_or_none(data.get("total"))
    if total is None:
        total = _int_or_none(paging_block.get("total"))

    rows = sort_submissions([submission_row(s) for s in results])
    columns = union_columns(SUBMISSION_PREFIX, rows, SUBMISSION_INTERNAL)
    rows = backfill(rows, columns)
    logger.debug("submissions %s: %s rows, total=%s, next=%s", form_id, len(rows), total, bool(next_cursor))

    paging = cursor_paging(
        str(next_cursor) if next_cursor not in (None, "") else None,
        total, limit, len(rows), page, cursor=after,
    )
    return supported_page(rows, columns, paging)


# -------------------------------------------------------------------
# Contacts (CRM search, offset)
# -------------------------------------------------------------------
def contacts_search_body(form_id: str, limit: int, offset: int, custom_properties=CONTACT_CUSTOM_PROPERTIES) -> dict:
    return {
        "filterGroups": [
            {"filters": [{
                "propertyName": "hs_calculated_form_submissions",
                "operator": "BETWEEN",
                "value": f"{form_id}::1111111111111",
                "highValue": f"{form_id}::9999999999999",
            }]},
            {"filters": [{
                "propertyName": "hs_calculated_form_submissions",
                "operator": "CONTAINS_TOKEN",
                "value": form_id,
            }]},
        ],
        "properties": contact_search_properties(custom_properties),
        "sorts": [{"propertyName": "createdate", "direction": "DESCENDING"}],
        "limit": limit,
        "after": str(offset),
    }


def search_contacts(client, form_id: str, limit: int = PAGE_SIZE, offset: int = 0,
                    custom_properties=CONTACT_CUSTOM_PROPERTIES) -> dict:
    try:
        r = client.post(CONTACTS_SEARCH, contacts_search_body(form_id, limit, offset, custom_properties))
        results = expect_container(r, "results")
    except UnsupportedEndpoint as e:
        logger.warning("contacts search for %s unsupported: %s", form_id, e)
        return unsupported_page(CONTACTS_UNSUPPORTED, "offset", limit, offset)
    except HubSpotError as e:
        return unsupported_page(e.message, "offset", limit, offset, reason=e.reason)

    data = r.data
    paging_block = data.get("paging") if isinstance(data.get("paging"), dict) else {}
    next_block = paging_block.get("next") if isinstance(paging_block.get("next"), dict) else {}

    rows = [contact_row(c, custom_properties) for c in results]
    columns = union_columns(contact_prefix(custom_properties), rows)
    rows = backfill(rows, columns)

    paging = offset_paging(
        offset, limit, _int_or_none(data.get("total")), len(rows),
        has_more=bool(next_block.get("after")) if paging_block else None,
    )
    return supported_page(rows, columns, paging)
