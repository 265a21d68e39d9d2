"""
Facebook Comment Scraper
========================
Reads comments from the rendered video/reel page.
"""

from scrapers.dom import DomCommentScraper


class FacebookCommentScraper(DomCommentScraper):
    platform = "facebook"
    display_name = "Facebook"
    id_prefix = "fb"
    default_caption = "Facebook Video"

    login_wall_selector = 'input[name="email"], form[data-testid="royal_login_form"]'
    dismiss_selectors = (
        '[aria-label="Close"]',
        'button[data-testid="cookie-policy-manage-dialog-accept-button"], button:has-text("Allow")',
    )
    caption_selector = 'h1, h2[dir="auto"], span[data-ad-preview="headline"]'
    max_scrolls = 20
    max_idle_scrolls = 3

    containers = (
        '[role="article"], div[data-testid="UFI2Comment/root_depth_0"], div[class*="UFIComment"]',
    )
    username_selector = (
        'a[role="link"][tabindex="0"], a[href*="/user/"], '
        'a[href*="/profile.php"], span[dir="auto"] > a'
    )
    text_selector = (
        '[data-ad-preview="message"], [data-ad-comet-preview="message"], '
        'div[dir="auto"]:not([role]), span[dir="auto"]'
    )
    avatar_selector = 'svg image, img[referrerpolicy="origin-when-cross-origin"]'
    time_selector = None
    exclude_text = ("Log in", "Write a comment")
