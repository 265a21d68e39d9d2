"""Stand-ins for the Playwright objects the scrapers talk to."""

from urllib.parse import parse_qs, urlparse


def raw_comment(cid, text="nice video", reply_total=0, create_time=1700000000,
                reply_id=None, share=None, username=None):
    """A comment object shaped like TikTok's comment-list payload."""
    raw = {
        "cid": cid,
        "text": text,
        "create_time": create_time,
        "reply_comment_total": reply_total,
        "user": {
            "unique_id": username or f"user_{cid}",
            "nickname": f"User {cid}",
            "avatar_thumb": {"url_list": [f"https://p16.example/{cid}.jpeg"]},
        },
    }
    if reply_id is not None:
        raw["reply_id"] = reply_id
    if share is not None:
        raw["share_info"] = share
    return raw


def page_payload(comments, has_more=0, cursor=0, status_code=0):
    return {"comments": comments, "has_more": has_more, "cursor": cursor, "status_code": status_code}


class FakeApiPage:
    """Answers in-page ``fetch`` calls from canned payloads.

    ``comment_pages`` maps cursor -> payload for /api/comment/list/,
    ``reply_pages`` maps (comment_id, cursor) -> payload for the reply list.
    A payload may be an Exception (raised) or a callable taking the cursor.
    Unknown cursors answer with an empty page.
    """

    def __init__(self, comment_pages=None, reply_pages=None):
        self.comment_pages = comment_pages or {}
        self.reply_pages = reply_pages or {}
        self.urls = []

    @property
    def comment_calls(self):
        return [u for u in self.urls if "/reply/" not in u]

    @property
    def reply_calls(self):
        return [u for u in self.urls if "/reply/" in u]

    async def evaluate(self, script, url):
        self.urls.append(url)
        parsed = urlparse(url)
        qs = parse_qs(parsed.query)
        cursor = int(qs["cursor"][0])
        if "/reply/" in parsed.path:
            payload = self.reply_pages.get((qs["comment_id"][0], cursor))
        else:
            payload = self.comment_pages.get(cursor)

        if isinstance(payload, Exception):
            raise payload
        if callable(payload):
            payload = payload(cursor)
        if payload is None:
            return page_payload([], has_more=0, cursor=cursor)
        return payload


class FakeFetcher:
    """Returns queued payloads from ``fetch_json`` and records the URLs."""

    def __init__(self, payloads):
        self.payloads = list(payloads)
        self.urls = []

    async def fetch_json(self, url):
        self.urls.append(url)
        if not self.payloads:
            return None
        return self.payloads.pop(0)


class FakeElement:
    def __init__(self, text=""):
        self.text = text
        self.clicks = 0

    async def click(self):
        self.clicks += 1

    async def text_content(self):
        return self.text


class FakeDomPage:
    """Rendered page for the DOM scrapers.

    ``selectors`` maps a selector string to the element ``query_selector``
    returns for it; ``extracted`` is what the extraction script yields.
    """

    def __init__(self, selectors=None, extracted=None):
        self.selectors = selectors or {}
        self.extracted = extracted or []
        self.gotos = []
        self.evaluations = 0

    async def goto(self, url, **kwargs):
        self.gotos.append(url)

    async def wait_for_timeout(self, ms):
        return None

    async def query_selector(self, selector):
        return self.selectors.get(selector)

    async def evaluate(self, script, arg=None):
        self.evaluations += 1
        if "querySelectorAll" in script:
            return self.extracted
        return 1000   # constant height: scrolling stops at once


class FakeContext:
    def __init__(self, page=None, cookies=None):
        self.page = page
        self.added_cookies = []
        self._cookies = cookies or []

    async def new_page(self):
        return self.page

    async def add_cookies(self, cookies):
        self.added_cookies.extend(cookies)

    async def cookies(self):
        return list(self._cookies)


class FakeHandle:
    def __init__(self, context, has_session=False):
        self.context = context
        self.has_session = has_session
        self.closed = False

    async def close(self):
        self.closed = True


class FakeSessionManager:
    """Hands out one prepared ``FakeHandle``."""

    def __init__(self, page, has_session=False):
        self.handle = FakeHandle(FakeContext(page), has_session=has_session)
        self.requested = []

    async def create_authenticated_context(self, platform, headless=True):
        self.requested.append(platform)
        return self.handle
