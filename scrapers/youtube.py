"""
YouTube Comment Scraper
=======================
Reads comment threads from the rendered watch page. Comments are public, so
an empty result is reported as-is rather than as an auth problem.
"""

from scrapers.dom import DomCommentScraper


class YouTubeCommentScraper(DomCommentScraper):
    platform = "youtube"
    display_name = "YouTube"
    id_prefix = "yt"
    default_caption = "YouTube Video"

    login_wall_selector = None
    auth_on_empty = False
    dismiss_selectors = (
        'button[aria-label*="Accept"], button:has-text("Accept all"), '
        'tp-yt-paper-button:has-text("Accept all"), ytd-button-renderer:has-text("Accept")',
    )
    scroll_container = "ytd-comments, #comments"
    caption_selector = (
        "h1.ytd-video-primary-info-renderer, h1 yt-formatted-string, "
        "ytd-watch-metadata h1 yt-formatted-string"
    )
    max_scrolls = 100
    max_idle_scrolls = 5

    containers = ("ytd-comment-thread-renderer",)
    scope_selector = "#comment, ytd-comment-view-model"
    username_selector = '#author-text, #author-text-content, a[href*="/@"], a[href*="/channel/"]'
    text_selector = "#content-text, yt-attributed-string#content-text, #content"
    avatar_selector = "#author-thumbnail img, #author-thumbnail yt-img-shadow img"
    time_selector = None
    reply_count_selector = (
        "#more-replies button, #replies #count, ytd-comment-replies-renderer #more-replies"
    )
