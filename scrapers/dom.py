"""
Rendered-page comment extraction for platforms without a usable list API.

This path is best effort: it scrolls the page a bounded number of times and
reads whatever comments the DOM shows. Unlike the TikTok API walk it makes
no completeness promise. Subclasses only supply selectors and wording.
"""

import logging
import time
from datetime import datetime

from scrapers.models import Comment, Comments
from scrapers.session import SessionManager
from config import settings

logger = logging.getLogger(__name__)

# One extraction routine for every platform; selectors arrive as ``cfg``
JS_EXTRACT_COMMENTS = """
(cfg) => {
    const results = [];
    const pick = (root, sel) => (sel ? root.querySelector(sel) : null);

    for (const selector of cfg.containers) {
        const elements = document.querySelectorAll(selector);
        if (elements.length === 0) continue;

        elements.forEach((el) => {
            const scope = pick(el, cfg.scope) || el;
            const userEl = pick(scope, cfg.username);
            const textEl = pick(scope, cfg.text);
            if (!userEl || !textEl) return;

            const username = (userEl.textContent || '').trim();
            const text = (textEl.textContent || '').trim();
            if (!username || !text || username === text) return;
            if (cfg.exclude.some((word) => text.includes(word))) return;
            if (results.some((r) => r.username === username && r.text === text)) return;

            const avatarEl = pick(scope, cfg.avatar);
            const timeEl = pick(scope, cfg.time);
            const replyEl = pick(el, cfg.replyCount);
            const replyMatch = ((replyEl && replyEl.textContent) || '').match(/(\\d+)/);

            results.push({
                username,
                text,
                avatar: (avatarEl && (avatarEl.getAttribute('src') || avatarEl.getAttribute('xlink:href'))) || '',
                timestamp: (timeEl && (timeEl.getAttribute('datetime') || '')) || '',
                replyCount: replyMatch ? parseInt(replyMatch[1], 10) : 0,
            });
        });

        if (results.length > 0) break;
    }
    return results;
}
"""

JS_SCROLL_COMMENTS = """
(containerSelector) => {
    const section = containerSelector ? document.querySelector(containerSelector) : null;
    if (section) {
        const prev = section.scrollHeight;
        section.scrollTop = section.scrollHeight;
        window.scrollBy(0, window.innerHeight);
        return prev;
    }
    const prev = document.body.scrollHeight;
    window.scrollBy(0, 800);
    return prev;
}
"""

JS_CONTENT_HEIGHT = """
(containerSelector) => {
    const section = containerSelector ? document.querySelector(containerSelector) : null;
    return (section && section.scrollHeight) || document.body.scrollHeight;
}
"""


def parse_dom_timestamp(value: str) -> int:
    """ISO ``datetime`` attribute -> epoch seconds; now when absent or unparseable."""
    if value:
        try:
            return int(datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp())
        except ValueError:
            pass
    return int(time.time())


class DomCommentScraper:
    """Base for rendered-page scrapers.

    Flow: open a (possibly authenticated) browser, navigate once, bail out
    with ``needs_auth`` when a login wall shows and no session was loaded,
    otherwise dismiss popups, scroll, extract and close.
    """

    platform = ""
    display_name = ""
    id_prefix = ""
    default_caption = "Post"

    login_wall_selector: str | None = None
    dismiss_selectors: tuple = ()
    scroll_container: str | None = None
    caption_selector = "h1"
    max_scrolls = 15
    max_idle_scrolls = 1         # stop once the height stayed put this many times
    auth_on_empty = True

    # Passed to JS_EXTRACT_COMMENTS
    containers: tuple = ()
    scope_selector: str | None = None
    username_selector = ""
    text_selector = ""
    avatar_selector: str | None = None
    time_selector: str | None = "time"
    reply_count_selector: str | None = None
    exclude_text: tuple = ()

    def __init__(
        self,
        session_manager: SessionManager | None = None,
        headless: bool = settings.HEADLESS,
        progress_callback: callable = None,
    ):
        self.session_manager = session_manager or SessionManager()
        self.headless = headless
        self._progress_callback = progress_callback

    def _progress(self, message: str):
        if self._progress_callback:
            try:
                self._progress_callback(message)
            except Exception as e:
                logger.debug("Progress callback failed: %s", e)

    def _login_hint(self) -> str:
        return f"log in to {self.display_name} from the Sessions page first"

    def login_wall_message(self) -> str:
        return f"{self.display_name} requires authentication to view comments. Please {self._login_hint()}."

    def empty_result_message(self) -> str:
        return (
            f"No comments found. {self.display_name} may require authentication. "
            f"Try again after you {self._login_hint()}."
        )

    # -- Page steps ---------------------------------------------------------

    async def _login_wall_present(self, page) -> bool:
        if not self.login_wall_selector:
            return False
        try:
            return await page.query_selector(self.login_wall_selector) is not None
        except Exception as e:
            logger.debug("Login wall check failed: %s", e)
            return False

    async def _dismiss_popups(self, page):
        for selector in self.dismiss_selectors:
            try:
                button = await page.query_selector(selector)
                if button:
                    await button.click()
                    await page.wait_for_timeout(1000)
            except Exception as e:
                logger.debug("Could not dismiss %s: %s", selector, e)

    async def _scroll(self, page):
        self._progress("Scrolling to load comments...")
        idle = 0
        for i in range(self.max_scrolls):
            previous = await page.evaluate(JS_SCROLL_COMMENTS, self.scroll_container)
            await page.wait_for_timeout(1500)
            current = await page.evaluate(JS_CONTENT_HEIGHT, self.scroll_container)
            if current == previous:
                idle += 1
                if idle >= self.max_idle_scrolls:
                    logger.info("No new content loaded after scroll %d, stopping", i + 1)
                    return
            else:
                idle = 0

    def _extract_config(self) -> dict:
        return {
            "containers": list(self.containers),
            "scope": self.scope_selector,
            "username": self.username_selector,
            "text": self.text_selector,
            "avatar": self.avatar_selector,
            "time": self.time_selector,
            "replyCount": self.reply_count_selector,
            "exclude": list(self.exclude_text),
        }

    def build_comment(self, data: dict, index: int, stamp_ms: int) -> Comment:
        name = data.get("username", "")
        return Comment.from_epoch(
            comment_id=f"{self.id_prefix}_{stamp_ms}_{index}",
            username="_".join(name.replace("@", "").split()).lower(),
            nickname=name.replace("@", "").strip(),
            comment=data.get("text", ""),
            create_time=parse_dom_timestamp(data.get("timestamp", "")),
            avatar=data.get("avatar", ""),
            total_reply=data.get("replyCount", 0) or 0,
            is_orphan_reply=False,
        )

    async def _extract(self, page) -> list[Comment]:
        try:
            raw = await page.evaluate(JS_EXTRACT_COMMENTS, self._extract_config())
        except Exception as e:
            logger.error("Failed to parse %s comments: %s", self.display_name, e)
            return []
        stamp_ms = int(time.time() * 1000)
        return [self.build_comment(d, i, stamp_ms) for i, d in enumerate(raw or [])]

    async def _caption(self, page) -> str:
        try:
            el = await page.query_selector(self.caption_selector)
            if el:
                return ((await el.text_content()) or "").strip()
        except Exception as e:
            logger.debug("Caption extraction failed: %s", e)
        return ""

    # -- Public entry point -------------------------------------------------

    async def scrape(self, url: str) -> Comments:
        self._progress(f"Launching browser for {self.display_name}...")
        handle = await self.session_manager.create_authenticated_context(
            self.platform, headless=self.headless,
        )
        try:
            if handle.has_session:
                logger.info("Using saved %s session", self.display_name)
            else:
                logger.info("No %s session found, scraping as guest", self.display_name)

            page = await handle.context.new_page()
            logger.info("Navigating to %s: %s", self.display_name, url)
            await page.goto(url, wait_until="domcontentloaded", timeout=60000)
            await page.wait_for_timeout(3000)

            if not handle.has_session and await self._login_wall_present(page):
                logger.warning("%s login wall detected. Session required.", self.display_name)
                return Comments.auth_required(
                    self.default_caption, url, self.login_wall_message(), platform=self.platform,
                )

            await self._dismiss_popups(page)
            await self._scroll(page)
            comments = await self._extract(page)
            caption = await self._caption(page) or self.default_caption

            logger.info("Scraped %d comments from %s", len(comments), self.display_name)
            self._progress(f"Found {len(comments)} comments")

            if not comments and not handle.has_session and self.auth_on_empty:
                return Comments.auth_required(
                    caption, url, self.empty_result_message(), platform=self.platform,
                )
            return Comments(caption, url, comments, has_more=0, platform=self.platform)
        finally:
            await handle.close()
