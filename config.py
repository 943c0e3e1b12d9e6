import os
from dotenv import load_dotenv

# -------------------------------------------------------------------
# Load env
# -------------------------------------------------------------------
load_dotenv()


def _env_int(name: str, default: int, minimum: int | None = None) -> int:
    try:
        value = int(os.getenv(name, str(default)))
    except ValueError:
        return default
    if minimum is not None and value < minimum:
        return default
    return value


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_list(name: str, default: str) -> list[str]:
    raw = os.getenv(name, default)
    return [p.strip() for p in raw.split(",") if p.strip()]


# -------------------------------------------------------------------
# HubSpot basics
# -------------------------------------------------------------------
TOKEN_PLACEHOLDER = "YOUR_HUBSPOT_TOKEN_HERE"
HUBSPOT_TOKEN     = os.getenv("HUBSPOT_TOKEN", "")
HUBSPOT_BASE      = os.getenv("HUBSPOT_BASE", "https://api.hubapi.com").rstrip("/")
HUBSPOT_TIMEOUT   = _env_float("HUBSPOT_TIMEOUT", 30)

# -------------------------------------------------------------------
# Paging
# -------------------------------------------------------------------
PAGE_SIZE          = _env_int("PAGE_SIZE", 25, minimum=1)
LIST_LIMIT         = _env_int("LIST_LIMIT", 250, minimum=1)
LAST_PAGE_MAX_HOPS = _env_int("LAST_PAGE_MAX_HOPS", 50)
LAST_PAGE_DELAY    = _env_float("LAST_PAGE_DELAY", 0.1)

# Form submissions endpoint ignores unknown params; only send the sort when asked to
SUBMISSIONS_API_SORT = os.getenv("SUBMISSIONS_API_SORT", "").lower() in ("1", "true", "yes", "on")

# Account-specific contact properties pinned after the standard ones
CONTACT_CUSTOM_PROPERTIES = _env_list("CONTACT_CUSTOM_PROPERTIES", "franchise_id,hs_analytics_first_url")

PORT = _env_int("PORT", 10000)
