"""
Instagram Comment Scraper
=========================
Reads comments from the rendered post page. Instagram shows a login form to
most guests, so a saved session is usually required.
"""

from scrapers.dom import DomCommentScraper


class InstagramCommentScraper(DomCommentScraper):
    platform = "instagram"
    display_name = "Instagram"
    id_prefix = "ig"
    default_caption = "Instagram Post"

    login_wall_selector = 'input[name="username"], form[id="loginForm"]'
    dismiss_selectors = (
        'button:has-text("View all"), span:has-text("View all")',
        '[aria-label="Close"], button:has-text("Not Now")',
    )
    scroll_container = 'ul._a9ym, div[class*="Comments"], article'
    caption_selector = 'h1, span[class*="_a9zs"]:first-of-type, article header + div span'
    max_scrolls = 15

    containers = (
        'ul._a9ym > div[role="button"]',
        "ul._a9ym li",
        'div[class*="C4VMK"]',
        "article div ul li",
        '[data-testid="post-comment"]',
    )
    username_selector = 'a[href^="/"][role="link"], a[href^="/"], h3 a, h2 a, span a'
    text_selector = 'span[class*="_a9zs"], span[dir="auto"], span:not(:empty)'
    avatar_selector = 'img[alt*="profile picture"], img[crossorigin="anonymous"]'
    time_selector = "time"
    exclude_text = ("Log in", "Sign up", "liked by")
