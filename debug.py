"""
Operator check for the HubSpot token.

  python debug.py                      token status + one forms call
  python debug.py --form <guid>        walk that form's submissions page by page
  python debug.py --form <guid> --last jump straight to the last page
"""
import argparse

import config
import forms
from hubspot_client import HubSpotClient, debug_descriptor
from paging import CursorPager


def print_token_status(token: str):
    d = debug_descriptor(token)
    status = f"SET ({d['tokenLength']} chars)" if d["tokenConfigured"] else "NOT SET"
    print(f"Token status: {status}")
    print(f"HubSpot base: {d['hubspotBase']}")


def print_page(pager: CursorPager):
    page = pager.page or {}
    if not page.get("supported"):
        print(f"Submissions unsupported: {page.get('message', '')}")
        return
    paging = page["paging"]
    total_pages = paging.get("totalPages") or "—"
    print(f"Page {pager.current_page} of {total_pages} • {paging['recordCount']} records on this page")


def walk_submissions(client: HubSpotClient, form_id: str, jump_last: bool = False, max_pages: int = 5):
    pager = CursorPager(
        lambda cursor, limit, page: forms.get_submissions(client, form_id, limit=limit, after=cursor, page=page),
        limit=config.PAGE_SIZE,
    )
    pager.load()
    print_page(pager)
    if jump_last:
        pager.last()
        print_page(pager)
        return pager

    seen = 1
    while pager.has_next and seen < max_pages:
        pager.next()
        print_page(pager)
        seen += 1
    return pager


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Check the HubSpot token and inspect a form's submissions.")
    parser.add_argument("--form", help="Form GUID whose submissions to walk.")
    parser.add_argument("--last", action="store_true", help="Jump to the last submissions page.")
    parser.add_argument("--pages", type=int, default=5, help="Pages to walk forward (default: 5).")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    client = HubSpotClient(config.HUBSPOT_TOKEN)

    print_token_status(client.token)
    result = client.ping()
    print(f"HTTP Code: {result['code']}")
    if result["error"]:
        print(f"Error: {result['error']}")
    print(f"Response: {result['preview']}...")

    if args.form:
        walk_submissions(client, args.form, jump_last=args.last, max_pages=args.pages)


if __name__ == "__main__":
    main()
