"""
Platform detection and content-id extraction from URLs.
"""

import asyncio
import logging
import re

import aiohttp

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)

PLATFORMS = ("tiktok", "facebook", "instagram", "youtube")

DISPLAY_NAMES = {
    "tiktok": "TikTok",
    "facebook": "Facebook",
    "instagram": "Instagram",
    "youtube": "YouTube",
    "unknown": "Social Media",
}

URL_PATTERNS = {
    "tiktok": [
        r"(?:www\.)?tiktok\.com/@[^/]+/(?:video|photo)/\d+",
        r"(?:vm|vt)\.tiktok\.com/\w+",
        r"tiktok\.com/t/\w+",
        r"(?:www\.)?tiktok\.com",
    ],
    "facebook": [
        r"(?:www\.)?facebook\.com/(?:watch/?\?v=|[^/]+/videos/)\d+",
        r"(?:www\.)?facebook\.com/reel/\d+",
        r"fb\.watch/\w+",
        r"(?:www\.)?facebook\.com",
    ],
    "instagram": [
        r"(?:www\.)?instagram\.com/(?:p|reel)/[\w-]+",
        r"(?:www\.)?instagram\.com/[\w.]+/(?:p|reel)/[\w-]+",
        r"(?:www\.)?instagram\.com",
    ],
    "youtube": [
        r"(?:www\.)?youtube\.com/watch\?v=[\w-]+",
        r"(?:www\.)?youtube\.com/shorts/[\w-]+",
        r"youtu\.be/[\w-]+",
        r"(?:www\.)?youtube\.com",
    ],
}

SHORT_LINK_PATTERN = re.compile(r"(?:vm|vt)\.tiktok\.com/|tiktok\.com/t/|fb\.watch/|youtu\.be/")


def normalize_url(url: str) -> str:
    url = url.strip()
    if url and not url.startswith("http"):
        url = f"https://{url}"
    return url


def detect_platform(url: str) -> str:
    """Return "tiktok", "facebook", "instagram", "youtube" or "unknown"."""
    normalized = url.lower().strip()
    for platform, patterns in URL_PATTERNS.items():
        for pattern in patterns:
            if re.search(pattern, normalized):
                return platform
    return "unknown"


def extract_content_id(url: str, platform: str) -> str | None:
    """Extract the video/post id from ``url`` for ``platform``."""
    if platform == "tiktok":
        match = re.search(r"/(?:video|photo)/(\d+)", url)
        if match:
            return match.group(1)
        match = re.search(r"[?&]item_id=(\d+)", url)
        return match.group(1) if match else None
    if platform == "youtube":
        match = (
            re.search(r"[?&]v=([\w-]+)", url)
            or re.search(r"youtu\.be/([\w-]+)", url)
            or re.search(r"/shorts/([\w-]+)", url)
        )
        return match.group(1) if match else None
    if platform == "instagram":
        match = re.search(r"/(?:p|reel|reels|tv)/([\w-]+)", url)
        return match.group(1) if match else None
    if platform == "facebook":
        match = (
            re.search(r"/videos/(\d+)", url)
            or re.search(r"[?&]v=(\d+)", url)
            or re.search(r"/reel/(\d+)", url)
            or re.search(r"fb\.watch/(\w+)", url)
        )
        return match.group(1) if match else None
    return None


def is_short_link(url: str) -> bool:
    return bool(SHORT_LINK_PATTERN.search(url.lower()))


async def resolve_short_url(url: str, timeout: float = 10) -> str:
    """Follow redirects of a short link (vm.tiktok.com etc.) to the full URL.

    Returns ``url`` unchanged when it is not a short link or resolution fails.
    """
    if not is_short_link(url):
        return url
    try:
        async with aiohttp.ClientSession(headers={"User-Agent": USER_AGENT}) as session:
            async with session.head(
                url,
                allow_redirects=True,
                timeout=aiohttp.ClientTimeout(total=timeout),
            ) as resp:
                final_url = str(resp.url)
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        logger.warning("Could not resolve short URL %s: %s", url, e)
        return url
    logger.info("Resolved short URL %s -> %s", url, final_url)
    return final_url
