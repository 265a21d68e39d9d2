"""
Cursor pagination and comment-tree assembly.

``CursorPaginator`` walks any list endpoint that answers with
``{<items>: [...], has_more: 0|1, cursor: ..., status_code?: int}``. It is
shared by the top-level comment walk and by reply resolution, so both stop
under exactly the same conditions:

  * the fetch gave up (``None`` payload)
  * the API returned a non-zero ``status_code``
  * the page is empty
  * ``has_more`` is false
  * the cursor returned for the next page does not advance

``TreeAssembler`` owns the per-walk ``seen_ids`` set and the placement of
reply records that the top-level endpoint interleaves into its stream.
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from urllib.parse import urlencode

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50

# Why a paginator stopped -- kept on the paginator for logging and tests
STOP_FETCH_FAILED = "fetch_failed"
STOP_STATUS_CODE = "status_code"
STOP_EMPTY_PAGE = "empty_page"
STOP_NO_MORE = "no_more"
STOP_CURSOR_STALLED = "cursor_stalled"


@dataclass(frozen=True)
class ListEndpoint:
    """Shape of one paginated list endpoint."""
    url: str
    params: dict = field(default_factory=dict)
    page_size: int = DEFAULT_PAGE_SIZE
    size_param: str = "count"
    cursor_param: str = "cursor"
    items_key: str = "comments"
    cursor_key: str = "cursor"
    has_more_key: str = "has_more"
    status_key: str = "status_code"

    def build_url(self, cursor) -> str:
        query = dict(self.params)
        query[self.size_param] = self.page_size
        query[self.cursor_param] = cursor
        return f"{self.url}?{urlencode(query)}"


@dataclass
class Page:
    number: int
    cursor: object          # cursor this page was requested with
    items: list
    has_more: bool
    next_cursor: object


def cursor_stalled(previous, new) -> bool:
    """True when ``new`` would not move pagination forward.

    Numeric cursors must strictly increase; opaque tokens must change.
    """
    if new is None:
        return True
    numeric = (int, float)
    if isinstance(previous, numeric) and isinstance(new, numeric) \
            and not isinstance(previous, bool) and not isinstance(new, bool):
        return new <= previous
    return new == previous


def _flag(value) -> bool:
    return value is True or value == 1 or value == "1"


class CursorPaginator:
    """Lazily yield pages from a cursor-paginated endpoint.

    ``pages()`` is a finite, non-restartable async generator. The consumer
    runs between pages, so work it does per page (reply resolution) finishes
    before the next request goes out.
    """

    def __init__(
        self,
        fetcher,
        endpoint: ListEndpoint,
        start_cursor=0,
        page_delay: float = 0.0,
        label: str = "items",
    ):
        self.fetcher = fetcher
        self.endpoint = endpoint
        self.start_cursor = start_cursor
        self.page_delay = page_delay
        self.label = label
        self.stop_reason: str | None = None
        self.pages_fetched = 0

    async def pages(self):
        ep = self.endpoint
        cursor = self.start_cursor
        number = 0

        while True:
            number += 1
            logger.info("Fetching %s page %d (cursor: %s)...", self.label, number, cursor)
            data = await self.fetcher.fetch_json(ep.build_url(cursor))

            if data is None:
                logger.warning("Failed to fetch %s page %d, stopping", self.label, number)
                self.stop_reason = STOP_FETCH_FAILED
                return

            status = data.get(ep.status_key)
            if status not in (None, 0, "0"):
                logger.warning("%s API returned %s: %s", self.label, ep.status_key, status)
                self.stop_reason = STOP_STATUS_CODE
                return

            items = data.get(ep.items_key) or []
            if not items:
                logger.info("No more %s on page %d", self.label, number)
                self.stop_reason = STOP_EMPTY_PAGE
                return

            self.pages_fetched += 1
            has_more = _flag(data.get(ep.has_more_key, 0))
            next_cursor = data.get(ep.cursor_key)

            yield Page(number, cursor, items, has_more, next_cursor)

            if not has_more:
                self.stop_reason = STOP_NO_MORE
                return

            if cursor_stalled(cursor, next_cursor):
                logger.warning(
                    "Cursor did not advance for %s (%s -> %s), breaking loop",
                    self.label, cursor, next_cursor,
                )
                self.stop_reason = STOP_CURSOR_STALLED
                return

            cursor = next_cursor
            if self.page_delay:
                await asyncio.sleep(self.page_delay)


class TreeAssembler:
    """Collect one walk's comments and assemble the final tree.

    Top-level comments arrive with their replies already resolved. Reply
    records echoed inline by the top-level endpoint are held back and placed
    at ``build()`` time: under their parent when the parent was seen in this
    walk, otherwise kept in stream position as an orphan. A parent's
    ``total_reply`` is raised to cover attached replies so that
    ``len(replies) <= total_reply`` holds for every built comment.
    """

    def __init__(self):
        self.seen_ids: set[str] = set()
        self._entries: list = []       # Comment, in stream order
        self._reply_ids: set[str] = set()
        self.duplicates = 0

    def accept(self, comment_id: str) -> bool:
        """Record ``comment_id``; False if this walk already emitted it."""
        if comment_id in self.seen_ids:
            self.duplicates += 1
            return False
        self.seen_ids.add(comment_id)
        return True

    def add_comment(self, comment):
        self._entries.append(comment)
        self._reply_ids.update(r.comment_id for r in comment.replies)

    def add_inline_reply(self, reply):
        self._entries.append(reply)

    @property
    def top_level_count(self) -> int:
        return sum(1 for c in self._entries if not c.is_reply)

    def build(self) -> list:
        top_ids = {c.comment_id for c in self._entries if not c.is_reply}
        attached: dict[str, list] = {}
        for c in self._entries:
            if c.is_reply and c.parent_comment_id in top_ids:
                if c.comment_id in self._reply_ids:
                    continue
                attached.setdefault(c.parent_comment_id, []).append(c)

        result = []
        for c in self._entries:
            if not c.is_reply:
                replies = c.replies + tuple(attached.get(c.comment_id, ()))
                # total_reply never drops below the replies actually held
                total_reply = max(c.total_reply, len(replies))
                if replies != c.replies or total_reply != c.total_reply:
                    c = replace(c, replies=replies, total_reply=total_reply)
                result.append(c)
            elif c.parent_comment_id not in top_ids:
                logger.info(
                    "Reply %s has no parent %s in this walk, keeping as orphan",
                    c.comment_id, c.parent_comment_id,
                )
                result.append(replace(c, is_orphan_reply=True))
        return result
