import unittest

import forms
from fakes import FakeClient, http_error, ok
from hubspot_client import CredentialMissing, UpstreamUnavailable

FORM_ID = "5f6a-guid"
SUBMISSIONS_PATH = f"{forms.SUBMISSIONS}/{FORM_ID}"

V3_FORM = {
    "id": FORM_ID,
    "name": "Contact us",
    "fieldGroups": [
        {"fields": [{"name": "email", "label": "Email", "fieldType": "email"}, {"name": "firstname"}]},
        {"fields": [{"name": "message", "fieldType": "multi_line_text"}]},
    ],
}

V2_FORM = {
    "guid": FORM_ID,
    "name": "Contact us (legacy)",
    "formFieldGroups": [{"fields": [{"name": "email", "label": "Email", "type": "string"}]}],
}


def submissions_payload(**extra):
    payload = {
        "results": [
            {
                "conversationId": "conv-1",
                "submittedAt": 1700000000000,
                "pageUrl": "https://example.com/a",
                "values": [{"name": "email", "value": "old@example.com"}],
            },
            {
                "submittedAt": 1710000000000,
                "values": [
                    {"name": "email", "value": "new@example.com"},
                    {"name": "interests", "values": ["seo", "ads"]},
                ],
            },
        ],
        "paging": {"next": {"after": "cursor-2"}},
    }
    payload.update(extra)
    return payload


class ListFormsTests(unittest.TestCase):
    def test_v3_results(self) -> None:
        client = FakeClient({("GET", forms.FORMS_V3): ok({"results": [V3_FORM]})})
        items, reason = forms.list_forms(client)
        self.assertIsNone(reason)
        self.assertEqual([f["id"] for f in items], [FORM_ID])
        self.assertEqual(len(items[0]["fields"]), 3)
        self.assertEqual(client.calls[0][2], {"limit": 250})

    def test_v3_empty_is_not_a_failure(self) -> None:
        client = FakeClient({("GET", forms.FORMS_V3): ok({"results": []})})
        self.assertEqual(forms.list_forms(client), ([], None))
        self.assertEqual(client.paths(), [forms.FORMS_V3])

    def test_falls_back_to_v2(self) -> None:
        for v3 in (http_error(500), ok({"status": "weird"}), UpstreamUnavailable("timeout")):
            with self.subTest(v3=v3):
                client = FakeClient({
                    ("GET", forms.FORMS_V3): v3,
                    ("GET", forms.FORMS_V2): ok([V2_FORM]),
                })
                items, reason = forms.list_forms(client)
                self.assertIsNone(reason)
                self.assertEqual(items[0]["name"], "Contact us (legacy)")
                self.assertEqual(items[0]["id"], FORM_ID)
                self.assertEqual(client.paths(), [forms.FORMS_V3, forms.FORMS_V2])

    def test_both_versions_failing(self) -> None:
        self.assertEqual(forms.list_forms(FakeClient()), ([], "upstream_error"))

    def test_missing_token(self) -> None:
        client = FakeClient(raise_all=CredentialMissing())
        self.assertEqual(forms.list_forms(client), ([], "token_not_configured"))


class GetFormTests(unittest.TestCase):
    def test_v3_fields_in_source_order_with_labels(self) -> None:
        client = FakeClient({("GET", f"{forms.FORMS_V3}/{FORM_ID}"): ok(V3_FORM)})
        form, reason = forms.get_form(client, FORM_ID)
        self.assertIsNone(reason)
        self.assertEqual([f["name"] for f in form["fields"]], ["email", "firstname", "message"])
        self.assertEqual([f["label"] for f in form["fields"]], ["Email", "firstname", "message"])

    def test_v2_fallback_keeps_requested_id(self) -> None:
        client = FakeClient({("GET", f"{forms.FORMS_V2}/{FORM_ID}"): ok(dict(V2_FORM, guid="other"))})
        form, reason = forms.get_form(client, FORM_ID)
        self.assertIsNone(reason)
        self.assertEqual(form["id"], FORM_ID)
        self.assertEqual(form["fields"], [{"name": "email", "label": "Email", "type": "string"}])

    def test_degrades_to_empty_fields(self) -> None:
        form, reason = forms.get_form(FakeClient(), FORM_ID)
        self.assertEqual(form, {"id": FORM_ID, "name": "", "fields": []})
        self.assertEqual(reason, "upstream_error")

        form, reason = forms.get_form(FakeClient(raise_all=CredentialMissing()), FORM_ID)
        self.assertEqual(form["fields"], [])
        self.assertEqual(reason, "token_not_configured")


class SubmissionsTests(unittest.TestCase):
    def test_rows_sorted_newest_first_without_internal_key(self) -> None:
        client = FakeClient({("GET", SUBMISSIONS_PATH): ok(submissions_payload())})
        page = forms.get_submissions(client, FORM_ID, limit=25)

        self.assertTrue(page["supported"])
        self.assertEqual([r["email"] for r in page["rows"]], ["new@example.com", "old@example.com"])
        self.assertEqual(page["columns"], ["conversationId", "submittedAt", "pageUrl", "email", "interests"])
        for row in page["rows"]:
            self.assertNotIn("_rawSubmittedAt", row)
            self.assertEqual(list(row), page["columns"])
        self.assertEqual(page["rows"][0]["interests"], "seo, ads")
        self.assertEqual(page["rows"][1]["interests"], "")

        paging = page["paging"]
        self.assertEqual(paging["nextCursor"], "cursor-2")
        self.assertTrue(paging["hasNext"])
        self.assertFalse(paging["hasPrev"])
        self.assertEqual(paging["currentPage"], 1)
        self.assertIsNone(paging["total"])
        self.assertIsNone(paging["totalPages"])
        self.assertEqual(paging["recordCount"], 2)

    def test_cursor_page_hint_and_total(self) -> None:
        payload = submissions_payload(paging={"total": 57})
        client = FakeClient({("GET", SUBMISSIONS_PATH): ok(payload)})
        page = forms.get_submissions(client, FORM_ID, limit=25, after="cursor-2", page=3)

        self.assertEqual(client.calls[0][2], {"limit": 25, "after": "cursor-2"})
        paging = page["paging"]
        self.assertEqual(paging["currentPage"], 3)
        self.assertEqual(paging["total"], 57)
        self.assertEqual(paging["totalPages"], 3)
        self.assertFalse(paging["hasNext"])
        self.assertTrue(paging["hasPrev"])

    def test_page_defaults_to_two_after_a_cursor(self) -> None:
        client = FakeClient({("GET", SUBMISSIONS_PATH): ok(submissions_payload())})
        page = forms.get_submissions(client, FORM_ID, after="cursor-2")
        self.assertEqual(page["paging"]["currentPage"], 2)

    def test_api_sort_is_opt_in(self) -> None:
        client = FakeClient({("GET", SUBMISSIONS_PATH): ok(submissions_payload())})
        forms.get_submissions(client, FORM_ID, limit=10, api_sort=True)
        self.assertEqual(client.calls[0][2], {"limit": 10, "sort": "-submittedAt"})

    def test_legacy_submissions_container(self) -> None:
        payload = {"submissions": submissions_payload()["results"]}
        client = FakeClient({("GET", SUBMISSIONS_PATH): ok(payload)})
        page = forms.get_submissions(client, FORM_ID)
        self.assertTrue(page["supported"])
        self.assertEqual(len(page["rows"]), 2)
        self.assertFalse(page["paging"]["hasNext"])

    def test_unsupported_vs_empty(self) -> None:
        unsupported = forms.get_submissions(FakeClient({("GET", SUBMISSIONS_PATH): http_error(404)}), FORM_ID)
        self.assertFalse(unsupported["supported"])
        self.assertEqual(unsupported["message"], forms.SUBMISSIONS_UNSUPPORTED)
        self.assertEqual(unsupported["rows"], [])
        self.assertEqual(unsupported["columns"], [])
        self.assertFalse(unsupported["paging"]["hasNext"])
        self.assertFalse(unsupported["paging"]["hasPrev"])

        missing = forms.get_submissions(FakeClient({("GET", SUBMISSIONS_PATH): ok({"status": "ok"})}), FORM_ID)
        self.assertFalse(missing["supported"])

        empty = forms.get_submissions(FakeClient({("GET", SUBMISSIONS_PATH): ok({"results": []})}), FORM_ID)
        self.assertTrue(empty["supported"])
        self.assertEqual(empty["rows"], [])
        self.assertEqual(empty["columns"], ["conversationId", "submittedAt", "pageUrl"])

    def test_missing_token_and_transport_failure(self) -> None:
        page = forms.get_submissions(FakeClient(raise_all=CredentialMissing()), FORM_ID)
        self.assertFalse(page["supported"])
        self.assertEqual(page["reason"], "token_not_configured")

        page = forms.get_submissions(FakeClient(raise_all=UpstreamUnavailable("dns")), FORM_ID)
        self.assertFalse(page["supported"])
        self.assertEqual(page["reason"], "upstream_error")

    def test_same_request_same_page(self) -> None:
        client = FakeClient({("GET", SUBMISSIONS_PATH): ok(submissions_payload())})
        first = forms.get_submissions(client, FORM_ID, limit=25, after="c", page=2)
        second = forms.get_submissions(client, FORM_ID, limit=25, after="c", page=2)
        self.assertEqual(first, second)
        self.assertEqual(list(first["rows"][0]), list(second["rows"][0]))


class ContactsTests(unittest.TestCase):
    CUSTOM = ["franchise_id", "hs_analytics_first_url"]

    def contacts(self, **extra):
        payload = {
            "total": 57,
            "results": [
                {"id": "1", "properties": {"email": "a@example.com", "company": "Acme", "franchise_id": "F1"}},
                {"id": "2", "properties": {"firstname": "Bo", "jobtitle": "CTO"}},
            ],
        }
        payload.update(extra)
        return payload

    def test_search_body(self) -> None:
        body = forms.contacts_search_body(FORM_ID, 25, 50, self.CUSTOM)
        self.assertEqual(body["limit"], 25)
        self.assertEqual(body["after"], "50")
        between, token = body["filterGroups"]
        self.assertEqual(between["filters"][0]["operator"], "BETWEEN")
        self.assertEqual(between["filters"][0]["value"], f"{FORM_ID}::1111111111111")
        self.assertEqual(between["filters"][0]["highValue"], f"{FORM_ID}::9999999999999")
        self.assertEqual(token["filters"][0], {
            "propertyName": "hs_calculated_form_submissions",
            "operator": "CONTAINS_TOKEN",
            "value": FORM_ID,
        })
        self.assertEqual(body["sorts"], [{"propertyName": "createdate", "direction": "DESCENDING"}])
        self.assertEqual(body["properties"][:7], [
            "id", "email", "firstname", "lastname", "createdate", "franchise_id", "hs_analytics_first_url",
        ])

    def test_rows_and_offset_paging(self) -> None:
        client = FakeClient({("POST", forms.CONTACTS_SEARCH): ok(self.contacts())})
        page = forms.search_contacts(client, FORM_ID, limit=25, offset=25, custom_properties=self.CUSTOM)

        self.assertTrue(page["supported"])
        self.assertEqual(page["columns"], [
            "id", "email", "firstname", "lastname", "createdate",
            "franchise_id", "hs_analytics_first_url", "company", "jobtitle",
        ])
        self.assertEqual(page["rows"][0]["company"], "Acme")
        self.assertEqual(page["rows"][1]["company"], "")
        paging = page["paging"]
        self.assertEqual(paging["currentPage"], 2)
        self.assertEqual(paging["totalPages"], 3)
        self.assertTrue(paging["hasNext"])
        self.assertTrue(paging["hasPrev"])

    def test_unknown_total_uses_next_link(self) -> None:
        payload = self.contacts(paging={"next": {"after": "27"}})
        del payload["total"]
        client = FakeClient({("POST", forms.CONTACTS_SEARCH): ok(payload)})
        paging = forms.search_contacts(client, FORM_ID, limit=25, offset=0)["paging"]
        self.assertIsNone(paging["totalPages"])
        self.assertTrue(paging["hasNext"])

    def test_search_failure_is_unsupported(self) -> None:
        client = FakeClient({("POST", forms.CONTACTS_SEARCH): http_error(400)})
        page = forms.search_contacts(client, FORM_ID, offset=25)
        self.assertFalse(page["supported"])
        self.assertEqual(page["message"], forms.CONTACTS_UNSUPPORTED)
        self.assertFalse(page["paging"]["hasPrev"])


if __name__ == "__main__":
    unittest.main()
