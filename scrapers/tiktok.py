"""
TikTok Comments Scraper
=======================
Walks TikTok's internal comment API from inside a real browser page so every
request carries the session cookies the page established:

  1. /api/comment/list/        -- top-level comments, cursor paginated
  2. /api/comment/list/reply/  -- replies for one comment, cursor paginated

Pages and replies are fetched strictly one after another: each comment's
replies are fully resolved before the next comment is looked at.

Returns a ``Comments`` tree -- does NOT write files.
"""

import logging
from contextlib import asynccontextmanager

from scrapers.errors import InvalidIdentifierError
from scrapers.fetch import PageFetcher
from scrapers.models import Comment, Comments
from scrapers.pagination import (
    STOP_FETCH_FAILED,
    CursorPaginator,
    ListEndpoint,
    TreeAssembler,
)
from scrapers.session import SessionManager
from config import settings

# Suppress Playwright debug logging
logging.getLogger("playwright").setLevel(logging.ERROR)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
#  Constants
# ---------------------------------------------------------------------------

BASE_URL = "https://www.tiktok.com"
API_URL = f"{BASE_URL}/api"
COMMENT_LIST_URL = f"{API_URL}/comment/list/"
REPLY_LIST_URL = f"{API_URL}/comment/list/reply/"
APP_ID = "1988"

COMMENTS_PER_PAGE = 50
REPLIES_PER_PAGE = 50
PAGE_DELAY = 0.1          # seconds between top-level page requests

MEDIA_PATTERN = "**/*.{mp4,webm,ogg,mp3,wav,m4a,aac,m3u8,ts}"


# ---------------------------------------------------------------------------
#  Module-level helpers
# ---------------------------------------------------------------------------

def reply_target(raw: dict) -> str:
    """The parent id a record declares via ``reply_id``, or "" for top-level."""
    reply_id = raw.get("reply_id")
    if reply_id in (None, "", 0, "0"):
        return ""
    return str(reply_id)


def parse_comment(raw: dict, replies=(), parent_comment_id: str | None = None) -> Comment:
    """Turn a raw TikTok comment object into a ``Comment``.

    ``parent_comment_id`` wins over the record's own ``reply_id`` so replies
    resolved for a thread always point at its top-level comment.
    """
    user = raw.get("user") or {}

    avatar = user.get("avatar_thumb", {})
    if isinstance(avatar, dict):
        url_list = avatar.get("url_list") or []
        avatar_url = url_list[0] if url_list else ""
    elif isinstance(avatar, str):
        avatar_url = avatar
    else:
        avatar_url = ""

    return Comment.from_epoch(
        comment_id=str(raw.get("cid", "")),
        username=user.get("unique_id", ""),
        nickname=user.get("nickname", ""),
        comment=raw.get("text", ""),
        create_time=raw.get("create_time", 0),
        avatar=avatar_url,
        total_reply=raw.get("reply_comment_total", 0) or 0,
        replies=replies,
        parent_comment_id=parent_comment_id or reply_target(raw) or None,
    )


def comment_list_endpoint(video_id: str) -> ListEndpoint:
    return ListEndpoint(
        url=COMMENT_LIST_URL,
        params={"aid": APP_ID, "aweme_id": video_id},
        page_size=COMMENTS_PER_PAGE,
    )


def reply_list_endpoint(video_id: str, comment_id: str) -> ListEndpoint:
    return ListEndpoint(
        url=REPLY_LIST_URL,
        params={"aid": APP_ID, "comment_id": comment_id, "item_id": video_id},
        page_size=REPLIES_PER_PAGE,
    )


# ---------------------------------------------------------------------------
#  Core scraper class
# ---------------------------------------------------------------------------

class TikTokCommentScraper:
    """
    Scrapes all comments and replies from one TikTok video.

    ``scrape()`` owns the browser for the duration of one walk and always
    closes it. ``walk()`` and ``resolve_replies()`` only need ``fetcher`` to
    be bound to a page, so they can be driven directly with a fake page.
    """

    platform = "tiktok"

    def __init__(
        self,
        session_manager: SessionManager | None = None,
        headless: bool = settings.HEADLESS,
        progress_callback: callable = None,
        fetcher: PageFetcher | None = None,
        page_delay: float = PAGE_DELAY,
    ):
        self.session_manager = session_manager or SessionManager()
        self.headless = headless
        self.fetcher = fetcher or PageFetcher()
        self.page_delay = page_delay
        self._progress_callback = progress_callback
        self.video_id = ""

    # -- Progress reporting -------------------------------------------------

    def _progress(self, message: str):
        """Send a progress message via the callback (if provided)."""
        if self._progress_callback:
            try:
                self._progress_callback(message)
            except Exception as e:
                logger.debug("Progress callback failed: %s", e)

    # -- Browser lifecycle --------------------------------------------------

    @asynccontextmanager
    async def _browser_page(self):
        self._progress("Launching browser...")
        handle = await self.session_manager.create_authenticated_context(
            self.platform, headless=self.headless,
        )
        try:
            page = await handle.context.new_page()
            # Block heavy media to save bandwidth
            await page.route(MEDIA_PATTERN, lambda route: route.abort())

            self._progress("Initializing TikTok session...")
            await page.goto(BASE_URL, wait_until="domcontentloaded", timeout=60000)
            await page.wait_for_timeout(2000)

            self.fetcher.bind(page)
            self._progress("Browser ready, fetching comments...")
            yield page
        finally:
            self.fetcher.unbind()
            await handle.close()

    # -- Replies ------------------------------------------------------------

    async def resolve_replies(self, comment_id: str, parent_comment_id: str | None = None) -> list[Comment]:
        """Fetch every reply page for ``comment_id``.

        Each reply is tagged with ``parent_comment_id`` (the thread's
        top-level comment, defaulting to ``comment_id``).
        """
        parent = parent_comment_id or comment_id
        paginator = CursorPaginator(
            self.fetcher,
            reply_list_endpoint(self.video_id, comment_id),
            label=f"replies of {comment_id}",
        )

        replies = []
        seen = set()
        async for page in paginator.pages():
            for raw in page.items:
                reply = parse_comment(raw, parent_comment_id=parent)
                if reply.comment_id in seen:
                    continue
                seen.add(reply.comment_id)
                replies.append(reply)

        if paginator.stop_reason == STOP_FETCH_FAILED:
            logger.warning("Failed to fetch replies for comment %s", comment_id)
        return replies

    # -- Top-level walk -----------------------------------------------------

    async def walk(self, video_id: str) -> Comments:
        """Paginate all top-level comments of ``video_id`` to exhaustion."""
        self.video_id = str(video_id)
        assembler = TreeAssembler()
        caption = ""
        video_url = ""
        share_checked = False

        paginator = CursorPaginator(
            self.fetcher,
            comment_list_endpoint(self.video_id),
            page_delay=self.page_delay,
            label="comments",
        )

        async for page in paginator.pages():
            self._progress(f"Fetching page {page.number}...")

            if not share_checked:
                share_checked = True
                share = page.items[0].get("share_info") or {}
                caption = share.get("title", "") or ""
                video_url = share.get("url", "") or ""

            for raw in page.items:
                cid = str(raw.get("cid", ""))
                if not cid:
                    logger.warning("Skipping comment without id on page %d", page.number)
                    continue
                if not assembler.accept(cid):
                    logger.warning("Skipping duplicate comment %s", cid)
                    continue

                parent_id = reply_target(raw)
                if parent_id:
                    assembler.add_inline_reply(parse_comment(raw, parent_comment_id=parent_id))
                    continue

                replies = []
                total_reply = raw.get("reply_comment_total", 0) or 0
                if total_reply > 0:
                    logger.info("Fetching %d replies for comment %s...", total_reply, cid)
                    self._progress("Fetching replies...")
                    replies = await self.resolve_replies(cid, cid)

                comment = parse_comment(raw, replies)
                logger.debug("%s - %s : %s", comment.create_time, comment.username, comment.comment)
                assembler.add_comment(comment)

            self._progress(f"  Page {page.number}: {assembler.top_level_count} comments total")

        comments = assembler.build()
        logger.info(
            "Finished scraping: %d comments across %d pages",
            len(comments), paginator.pages_fetched,
        )
        return Comments(caption, video_url, comments, has_more=0, platform=self.platform)

    # -- Public entry point -------------------------------------------------

    async def scrape(self, video_id: str) -> Comments:
        """Open a browser, walk every comment page of ``video_id``, close the browser."""
        video_id = str(video_id).strip()
        if not video_id.isdigit():
            raise InvalidIdentifierError(
                f"TikTok video id must be numeric, e.g. 7418294751977327878 (got {video_id!r})"
            )

        self._progress(f"Video ID: {video_id}")
        async with self._browser_page():
            return await self.walk(video_id)
