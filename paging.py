"""
Pagination for the two styles HubSpot uses.

Offset style (HubDB rows, CRM search) is stateless: everything follows from
offset/limit/total. Cursor style (form submissions) only ever hands back a
forward cursor, so going backwards means remembering the cursors we used on
the way in. That memory lives with the client session (CursorPager), never on
the server.
"""
import logging
import math
import time

from config import LAST_PAGE_DELAY, LAST_PAGE_MAX_HOPS, PAGE_SIZE

logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# Paging descriptors
# -------------------------------------------------------------------
def total_pages_for(total, limit: int):
    if total is None:
        return None
    return max(1, math.ceil(total / max(1, limit)))


def offset_paging(offset: int, limit: int, total, record_count: int, has_more=None) -> dict:
    """
    total=None means the upstream did not say. Then "next" is only offered when
    the upstream advertised more (has_more) or the page came back full.
    """
    limit = max(1, limit)
    if total is not None:
        has_next = (offset + limit) < total
    elif has_more is not None:
        has_next = bool(has_more)
    else:
        has_next = record_count >= limit
    return {
        "style": "offset",
        "offset": offset,
        "limit": limit,
        "total": total,
        "totalPages": total_pages_for(total, limit),
        "currentPage": offset // limit + 1,
        "hasNext": has_next,
        "hasPrev": offset > 0,
        "recordCount": record_count,
    }


def cursor_paging(next_cursor, total, limit: int, record_count: int, page: int = 1, cursor=None) -> dict:
    """currentPage is whatever the caller says it is; the API has no page numbers."""
    next_cursor = next_cursor or None
    limit = max(1, limit)
    return {
        "style": "cursor",
        "cursor": cursor,
        "nextCursor": next_cursor,
        "limit": limit,
        "total": total,
        "totalPages": total_pages_for(total, limit),
        "currentPage": page,
        "hasNext": next_cursor is not None,
        "hasPrev": page > 1,
        "recordCount": record_count,
    }


def supported_page(rows: list, columns: list, paging: dict) -> dict:
    return {"supported": True, "rows": rows, "columns": columns, "paging": paging}


def unsupported_page(message: str, style: str = "offset", limit: int = PAGE_SIZE, offset: int = 0,
                     reason: str = "unsupported") -> dict:
    """Endpoint missing or disabled: no rows, no columns, nothing to page through."""
    if style == "cursor":
        paging = cursor_paging(None, None, limit, 0)
    else:
        paging = offset_paging(offset, limit, None, 0, has_more=False)
    paging["hasPrev"] = False
    return {"supported": False, "message": message, "reason": reason, "rows": [], "columns": [], "paging": paging}


# -------------------------------------------------------------------
# Client-side state
# -------------------------------------------------------------------
class RequestFence:
    """
    Generation counter. Every fetch takes a ticket; only the newest ticket's
    response may be applied, anything older arrived too late.
    """

    def __init__(self):
        self.generation = 0

    def issue(self) -> int:
        self.generation += 1
        return self.generation

    def is_current(self, generation: int) -> bool:
        return generation == self.generation


class CursorStack:
    def __init__(self):
        self._items = []

    def push(self, cursor):
        self._items.append(cursor)

    def pop(self):
        return self._items.pop() if self._items else None

    def clear(self):
        self._items = []

    def replace(self, items):
        self._items = list(items)

    @property
    def depth(self) -> int:
        return len(self._items)

    def snapshot(self) -> tuple:
        return tuple(self._items)

    def __len__(self):
        return len(self._items)


class CursorPager:
    """
    Navigation over a forward-only cursor API.

    fetch(cursor, limit, page) -> page dict (supported/rows/columns/paging).
    The stack holds the cursors that fetched every page before the current one,
    so the current page number is always depth + 1.
    """

    def __init__(self, fetch, limit: int = PAGE_SIZE, max_hops: int = LAST_PAGE_MAX_HOPS,
                 delay: float = LAST_PAGE_DELAY, sleep=time.sleep):
        self.fetch = fetch
        self.limit = limit
        self.max_hops = max_hops
        self.delay = delay
        self.sleep = sleep
        self.stack = CursorStack()
        self.fence = RequestFence()
        self.cursor = None
        self.page = None

    # --- state ---
    @property
    def supported(self) -> bool:
        return bool(self.page and self.page.get("supported"))

    @property
    def paging(self) -> dict:
        return (self.page or {}).get("paging") or {}

    @property
    def current_page(self) -> int:
        return self.stack.depth + 1

    @property
    def next_cursor(self):
        return self.paging.get("nextCursor") if self.supported else None

    @property
    def total_pages(self):
        return self.paging.get("totalPages") if self.supported else None

    @property
    def has_next(self) -> bool:
        return self.next_cursor is not None

    @property
    def has_prev(self) -> bool:
        return self.supported and self.stack.depth > 0

    def state(self) -> dict:
        return {
            "cursor": self.cursor,
            "stack": self.stack.snapshot(),
            "currentPage": self.current_page,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
            "canLast": self.has_next,
        }

    # --- fetching ---
    def _load(self):
        generation = self.fence.issue()
        page = self.fetch(self.cursor, self.limit, self.current_page)
        if not self.fence.is_current(generation):
            logger.debug("dropping stale cursor page (generation %s)", generation)
            return None
        self.page = page
        return page

    def reset(self):
        """New selection: forget everything and invalidate in-flight fetches."""
        self.fence.issue()
        self.stack.clear()
        self.cursor = None
        self.page = None

    def load(self):
        return self._load()

    def first(self):
        self.stack.clear()
        self.cursor = None
        return self._load()

    def _move(self, cursor, stack: tuple):
        """
        Load `cursor` with `stack` underneath it. A failed page leaves the
        pager where it was, so the user can retry or step back.
        """
        before = (self.cursor, self.stack.snapshot(), self.page)
        self.cursor = cursor
        self.stack.replace(stack)
        page = self._load()
        if page is not None and not page.get("supported"):
            logger.warning("cursor page %s failed, staying on page %s", cursor, len(before[1]) + 1)
            self.cursor, stack, self.page = before
            self.stack.replace(stack)
        return page

    def next(self):
        if not self.has_next:
            return self.page
        return self._move(self.next_cursor, self.stack.snapshot() + (self.cursor,))

    def prev(self):
        if not self.has_prev:
            return self.page
        stack = self.stack.snapshot()
        return self._move(stack[-1], stack[:-1])

    def last(self):
        """
        Unknown total: keep hopping until no cursor comes back (bounded).
        Known total: hop exactly totalPages - currentPage times (same bound).
        """
        if not self.has_next:
            return self.page
        if self.total_pages is None:
            budget = self.max_hops
        else:
            budget = min(max(0, self.total_pages - self.current_page), self.max_hops)

        hops = 0
        while self.has_next and hops < budget:
            if hops:
                self.sleep(self.delay)
            page = self.next()
            if page is None or not page.get("supported"):
                break
            hops += 1
        if self.has_next and hops >= self.max_hops:
            logger.warning("last page walk stopped after %s hops", hops)
        return self.page


class OffsetPager:
    """fetch(offset, limit) -> page dict. Stateless apart from the current offset."""

    def __init__(self, fetch, limit: int = PAGE_SIZE):
        self.fetch = fetch
        self.limit = limit
        self.fence = RequestFence()
        self.offset = 0
        self.page = None

    @property
    def supported(self) -> bool:
        return bool(self.page and self.page.get("supported"))

    @property
    def paging(self) -> dict:
        return (self.page or {}).get("paging") or {}

    @property
    def has_next(self) -> bool:
        return self.supported and bool(self.paging.get("hasNext"))

    @property
    def has_prev(self) -> bool:
        return self.supported and self.offset > 0

    @property
    def can_last(self) -> bool:
        return self.has_next and self.paging.get("totalPages") is not None

    def reset(self):
        self.fence.issue()
        self.offset = 0
        self.page = None

    def load(self, offset: int = 0):
        generation = self.fence.issue()
        page = self.fetch(max(0, offset), self.limit)
        if not self.fence.is_current(generation):
            logger.debug("dropping stale offset page (generation %s)", generation)
            return None
        self.offset = max(0, offset)
        self.page = page
        return page

    def first(self):
        return self.load(0)

    def next(self):
        if not self.has_next:
            return self.page
        return self.load(self.offset + self.limit)

    def prev(self):
        if not self.has_prev:
            return self.page
        return self.load(max(0, self.offset - self.limit))

    def last(self):
        if not self.can_last:
            return self.page
        return self.load((self.paging["totalPages"] - 1) * self.limit)
