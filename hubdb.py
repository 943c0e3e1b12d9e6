"""HubDB tables: list, schema and offset-paged rows (GET /cms/v3/hubdb/tables)."""
import logging
from urllib.parse import quote

from columns import backfill, union_columns
from config import LIST_LIMIT, PAGE_SIZE
from hubspot_client import HubSpotError, UnsupportedEndpoint, expect_container
from normalize import normalize_table, table_row
from paging import offset_paging, supported_page, unsupported_page
from schema import TABLE_ROW_PREFIX

logger = logging.getLogger(__name__)

TABLES = "/cms/v3/hubdb/tables"

ROWS_UNSUPPORTED = "HubDB table rows API not available or table not found."


def _empty_table(table_id: str) -> dict:
    return {"id": table_id, "name": "", "rowCount": 0, "fields": []}


def list_tables(client, limit: int = LIST_LIMIT):
    """Returns (tables, reason)."""
    try:
        r = client.get(TABLES, {"limit": limit})
        results = expect_container(r, "results")
    except HubSpotError as e:
        logger.warning("HubDB tables API failed: %s", e.reason)
        reason = "upstream_error" if isinstance(e, UnsupportedEndpoint) else e.reason
        return [], reason
    return [normalize_table(t) for t in results], None


def get_table(client, table_id: str):
    """Returns (table, reason); no legacy endpoint to fall back on."""
    try:
        r = client.get(f"{TABLES}/{quote(table_id, safe='')}")
    except HubSpotError as e:
        return _empty_table(table_id), e.reason

    if not r.ok or not isinstance(r.data, dict):
        logger.warning("no table details found for %s (HTTP %s)", table_id, r.code)
        return _empty_table(table_id), "upstream_error"
    return normalize_table(r.data, default_id=table_id, default_name=""), None


def get_table_rows(client, table_id: str, limit: int = PAGE_SIZE, offset: int = 0) -> dict:
    query = {"limit": limit, "offset": offset}
    try:
        r = client.get(f"{TABLES}/{quote(table_id, safe='')}/rows", query)
        results = expect_container(r, "results")
    except UnsupportedEndpoint as e:
        logger.warning("rows for table %s unsupported: %s", table_id, e)
        return unsupported_page(ROWS_UNSUPPORTED, "offset", limit, offset)
    except HubSpotError as e:
        return unsupported_page(e.message, "offset", limit, offset, reason=e.reason)

    total = r.data.get("total")
    if not isinstance(total, int) or isinstance(total, bool):
        total = None

    rows = [table_row(row) for row in results]
    columns = union_columns(TABLE_ROW_PREFIX, rows)
    rows = backfill(rows, columns)
    return supported_page(rows, columns, offset_paging(offset, limit, total, len(rows)))
