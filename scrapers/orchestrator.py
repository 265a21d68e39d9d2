"""
Single entry point for callers: ``scrape(identifier) -> Comments``.

Accepts a bare TikTok video id or any supported URL (short links included),
picks the platform's scraper and runs one scrape.
"""

import logging

from scrapers.errors import InvalidIdentifierError, UnsupportedPlatformError
from scrapers.facebook import FacebookCommentScraper
from scrapers.instagram import InstagramCommentScraper
from scrapers.models import Comments
from scrapers.session import SessionManager
from scrapers.tiktok import TikTokCommentScraper
from scrapers.youtube import YouTubeCommentScraper
from config import settings
from utils.platform import (
    detect_platform,
    extract_content_id,
    normalize_url,
    resolve_short_url,
)

logger = logging.getLogger(__name__)

DOM_SCRAPERS = {
    "instagram": InstagramCommentScraper,
    "facebook": FacebookCommentScraper,
    "youtube": YouTubeCommentScraper,
}


async def resolve_target(identifier: str, progress_callback=None) -> tuple[str, str, str]:
    """Map an id or URL to ``(platform, content_id, url)``.

    Raises InvalidIdentifierError / UnsupportedPlatformError before any
    browser is launched.
    """
    identifier = (identifier or "").strip()
    if not identifier:
        raise InvalidIdentifierError("Empty identifier")

    if identifier.isdigit():
        return "tiktok", identifier, ""

    url = normalize_url(identifier)
    resolved = await resolve_short_url(url)
    if resolved != url and progress_callback:
        progress_callback(f"Resolved short URL -> {resolved}")

    platform = detect_platform(resolved)
    if platform == "unknown":
        raise UnsupportedPlatformError(f"Unsupported URL: {identifier}")

    content_id = extract_content_id(resolved, platform)
    if not content_id:
        if platform == "tiktok":
            raise InvalidIdentifierError(
                f"Could not extract video ID from: {resolved} "
                "(URL must contain /video/NUMBERS or /photo/NUMBERS)"
            )
        raise InvalidIdentifierError(f"Could not extract a post id from: {resolved}")
    return platform, content_id, resolved


async def scrape(
    identifier: str,
    progress_callback=None,
    session_manager: SessionManager | None = None,
    headless: bool = settings.HEADLESS,
) -> Comments:
    """Scrape every comment reachable for ``identifier``."""
    platform, content_id, url = await resolve_target(identifier, progress_callback)
    session_manager = session_manager or SessionManager()
    logger.info("Scraping %s content %s", platform, content_id)

    if platform == "tiktok":
        scraper = TikTokCommentScraper(
            session_manager=session_manager,
            headless=headless,
            progress_callback=progress_callback,
        )
        return await scraper.scrape(content_id)

    scraper = DOM_SCRAPERS[platform](
        session_manager=session_manager,
        headless=headless,
        progress_callback=progress_callback,
    )
    return await scraper.scrape(url)
