import logging

from flask import Flask, jsonify, request

import config
import forms
import hubdb
from hubspot_client import HubSpotClient, debug_descriptor

# -------------------------------------------------------------------
# Flask
# -------------------------------------------------------------------
app = Flask(__name__)
app.json.sort_keys = False
app.config["HUBSPOT_TOKEN"] = config.HUBSPOT_TOKEN
app.config["HUBSPOT_BASE"] = config.HUBSPOT_BASE
app.config["HUBSPOT_TIMEOUT"] = config.HUBSPOT_TIMEOUT
app.config["PAGE_SIZE"] = config.PAGE_SIZE


def hubspot_client() -> HubSpotClient:
    return HubSpotClient(
        app.config["HUBSPOT_TOKEN"],
        base_url=app.config["HUBSPOT_BASE"],
        timeout=app.config["HUBSPOT_TIMEOUT"],
    )


def token_debug() -> dict:
    return debug_descriptor(app.config["HUBSPOT_TOKEN"], app.config["HUBSPOT_BASE"])


# -------------------------------------------------------------------
# Query parsing
# -------------------------------------------------------------------
def arg_limit() -> int:
    limit = request.args.get("limit", type=int)
    if limit is None or limit < 1:
        return max(1, app.config["PAGE_SIZE"])
    return limit


def arg_offset() -> int:
    offset = request.args.get("offset", type=int)
    return max(0, offset or 0)


def arg_page():
    page = request.args.get("page", type=int)
    return page if page and page > 0 else None


def entity_response(entity: dict, reason, requested_id: str):
    body = dict(entity)
    body["debug"] = {
        "requested_id": requested_id,
        "field_count": len(entity.get("fields") or []),
        "has_fields": bool(entity.get("fields")),
        "reason": reason,
    }
    return jsonify(body)


def list_response(key: str, entities: list, reason):
    body = {key: entities}
    if not entities:
        body["debug"] = {"reason": reason, **token_debug()}
    return jsonify(body)


def page_response(page: dict):
    if not page.get("supported"):
        page = {**page, "debug": {"reason": page.get("reason"), **token_debug()}}
    return jsonify(page)


# -------------------------------------------------------------------
# Forms
# -------------------------------------------------------------------
@app.route("/api/forms", methods=["GET"])
def api_forms():
    items, reason = forms.list_forms(hubspot_client())
    return list_response("forms", items, reason)


@app.route("/api/forms/<form_id>", methods=["GET"])
def api_form_details(form_id):
    form, reason = forms.get_form(hubspot_client(), form_id)
    return entity_response(form, reason, form_id)


@app.route("/api/forms/<form_id>/submissions", methods=["GET"])
def api_form_submissions(form_id):
    after = request.args.get("after") or None
    page = forms.get_submissions(hubspot_client(), form_id, limit=arg_limit(), after=after, page=arg_page())
    return page_response(page)


@app.route("/api/forms/<form_id>/contacts", methods=["GET"])
def api_form_contacts(form_id):
    page = forms.search_contacts(hubspot_client(), form_id, limit=arg_limit(), offset=arg_offset())
    return page_response(page)


# -------------------------------------------------------------------
# HubDB
# -------------------------------------------------------------------
@app.route("/api/tables", methods=["GET"])
def api_tables():
    items, reason = hubdb.list_tables(hubspot_client())
    return list_response("tables", items, reason)


@app.route("/api/tables/<table_id>", methods=["GET"])
def api_table_details(table_id):
    table, reason = hubdb.get_table(hubspot_client(), table_id)
    return entity_response(table, reason, table_id)


@app.route("/api/tables/<table_id>/rows", methods=["GET"])
def api_table_rows(table_id):
    page = hubdb.get_table_rows(hubspot_client(), table_id, limit=arg_limit(), offset=arg_offset())
    return page_response(page)


# -------------------------------------------------------------------
# Debug helpers
# -------------------------------------------------------------------
@app.route("/api/debug", methods=["GET"])
def api_debug():
    return jsonify(token_debug())


@app.route("/api/debug/ping", methods=["GET"])
def api_debug_ping():
    return jsonify(hubspot_client().ping())


@app.errorhandler(404)
def not_found(_e):
    return jsonify({"error": "Unknown endpoint"}), 404


# -------------------------------------------------------------------
# Run
# -------------------------------------------------------------------
if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    host = "0.0.0.0"
    port = config.PORT
    url = f"http://{host}:{port}/"
    print("\n================= HubSpot Inspector =================")
    print(f"→ Forms:        {url}api/forms")
    print(f"→ Form fields:  {url}api/forms/<id>")
    print(f"→ Submissions:  {url}api/forms/<id>/submissions")
    print(f"→ Contacts:     {url}api/forms/<id>/contacts")
    print(f"→ HubDB tables: {url}api/tables")
    print(f"→ Table rows:   {url}api/tables/<id>/rows")
    print(f"→ Debug:        {url}api/debug")
    print("=====================================================\n", flush=True)
    app.run(host=host, port=port, debug=False)
