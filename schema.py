# schema.py
# Fixed column prefixes and property lists for the HubSpot entities we inspect.

# --- HubDB table rows ---
TABLE_ROW_PREFIX = ["id"]

# --- Form submissions ---
SUBMISSION_PREFIX = ["conversationId", "submittedAt", "pageUrl"]
RAW_SUBMITTED_AT = "_rawSubmittedAt"  # sort-only, never exposed
SUBMISSION_INTERNAL = [RAW_SUBMITTED_AT]

# --- CRM contacts (search) ---
CONTACT_STANDARD = ["id", "email", "firstname", "lastname", "createdate"]

# Requested from the search API on top of standard + custom properties
CONTACT_EXTRA_PROPERTIES = [
    "updatedAt", "phone", "company", "jobtitle", "lifecyclestage",
    "hs_calculated_form_submissions",
]


def contact_prefix(custom_properties) -> list:
    return CONTACT_STANDARD + [p for p in custom_properties if p not in CONTACT_STANDARD]


def contact_search_properties(custom_properties) -> list:
    props = contact_prefix(custom_properties)
    return props + [p for p in CONTACT_EXTRA_PROPERTIES if p not in props]
