"""
Browser sessions -- saved logins and authenticated browser contexts.

Saved sessions are cookie snapshots taken after a manual login in a headed
browser. They are written once, when the login completes, and only read
while scraping. Storage sits behind a small ``CredentialStore`` interface so
the manager can run against a directory on disk or an in-memory dict.
"""

import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from config import settings
from scrapers.errors import LoginSessionError
from utils.common import clean_error

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)

LAUNCH_ARGS = [
    "--mute-audio",
    "--disable-gpu",
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
]

PLATFORM_CONFIGS = {
    "tiktok": {
        "login_url": "https://www.tiktok.com/login",
        "check_selector": '[data-e2e="profile-icon"], a[href*="/profile"]',
        "domain": ".tiktok.com",
    },
    "instagram": {
        "login_url": "https://www.instagram.com/accounts/login/",
        "check_selector": 'svg[aria-label="Home"], a[href="/"]',
        "domain": ".instagram.com",
    },
    "facebook": {
        "login_url": "https://www.facebook.com/login",
        "check_selector": '[aria-label="Facebook"], [data-pagelet="BlueBars"]',
        "domain": ".facebook.com",
    },
    "youtube": {
        "login_url": "https://accounts.google.com/ServiceLogin?service=youtube",
        "check_selector": 'button[aria-label*="Account"], #avatar-btn',
        "domain": ".youtube.com",
    },
}

COOKIE_FIELDS = ("name", "value", "domain", "path", "expires", "httpOnly", "secure", "sameSite")


# ---------------------------------------------------------------------------
#  Credential storage
# ---------------------------------------------------------------------------

@dataclass
class SessionData:
    cookies: list[dict] = field(default_factory=list)
    timestamp: float = 0.0                      # Unix seconds when saved
    local_storage: dict = field(default_factory=dict)

    def expires_at(self, expiry_seconds: float) -> float:
        return self.timestamp + expiry_seconds

    def is_valid(self, expiry_seconds: float, now: float | None = None) -> bool:
        now = time.time() if now is None else now
        return bool(self.cookies) and now < self.expires_at(expiry_seconds)

    def to_dict(self) -> dict:
        data = {"cookies": self.cookies, "timestamp": self.timestamp}
        if self.local_storage:
            data["localStorage"] = self.local_storage
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "SessionData":
        return cls(
            cookies=list(data.get("cookies") or []),
            timestamp=float(data.get("timestamp", 0)),
            local_storage=dict(data.get("localStorage") or {}),
        )


class CredentialStore(ABC):
    """load / save / clear saved sessions by platform name."""

    @abstractmethod
    def load(self, platform: str) -> SessionData | None:
        ...

    @abstractmethod
    def save(self, platform: str, data: SessionData) -> None:
        ...

    @abstractmethod
    def clear(self, platform: str) -> bool:
        ...


class FileCredentialStore(CredentialStore):
    """One ``<platform>-session.json`` file per platform under ``directory``."""

    def __init__(self, directory: str | Path | None = None):
        self.directory = Path(directory or settings.SESSIONS_DIR)

    def path_for(self, platform: str) -> Path:
        return self.directory / f"{platform}-session.json"

    def load(self, platform: str) -> SessionData | None:
        path = self.path_for(platform)
        if not path.exists():
            return None
        try:
            return SessionData.from_dict(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.error("Failed to read session for %s: %s", platform, e)
            return None

    def save(self, platform: str, data: SessionData) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self.path_for(platform).write_text(
            json.dumps(data.to_dict(), indent=2), encoding="utf-8",
        )

    def clear(self, platform: str) -> bool:
        path = self.path_for(platform)
        if not path.exists():
            return True
        try:
            path.unlink()
            return True
        except OSError as e:
            logger.error("Failed to clear session for %s: %s", platform, e)
            return False


class MemoryCredentialStore(CredentialStore):
    def __init__(self):
        self._sessions: dict[str, SessionData] = {}

    def load(self, platform: str) -> SessionData | None:
        return self._sessions.get(platform)

    def save(self, platform: str, data: SessionData) -> None:
        self._sessions[platform] = data

    def clear(self, platform: str) -> bool:
        self._sessions.pop(platform, None)
        return True


# ---------------------------------------------------------------------------
#  Browser handles
# ---------------------------------------------------------------------------

@dataclass
class BrowserHandle:
    """A launched browser plus one context; ``close()`` releases all of it."""
    playwright: object
    browser: object
    context: object
    has_session: bool = False

    async def close(self):
        try:
            if self.browser:
                await self.browser.close()
        except Exception as e:
            logger.debug("Browser close failed: %s", clean_error(e))
        try:
            if self.playwright:
                await self.playwright.stop()
        except Exception as e:
            logger.debug("Playwright stop failed: %s", clean_error(e))
        self.browser = None
        self.context = None
        self.playwright = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()


async def launch_browser(headless: bool = True, viewport: dict | None = None):
    """Start Playwright, launch Chromium and open a context.

    Returns ``(playwright, browser, context)``; the caller owns cleanup.
    """
    from playwright.async_api import async_playwright

    pw = await async_playwright().start()
    try:
        launch_kwargs = {
            "headless": headless,
            "handle_sigint": False,
            "args": LAUNCH_ARGS if headless else LAUNCH_ARGS + ["--start-maximized"],
        }
        if settings.CHROMIUM_EXECUTABLE:
            launch_kwargs["executable_path"] = settings.CHROMIUM_EXECUTABLE
        browser = await pw.chromium.launch(**launch_kwargs)
        context = await browser.new_context(
            user_agent=USER_AGENT,
            viewport=viewport,
            locale="en-US",
        )
    except Exception:
        await pw.stop()
        raise
    return pw, browser, context


# ---------------------------------------------------------------------------
#  Session manager
# ---------------------------------------------------------------------------

class SessionManager:
    """Saved-session bookkeeping, interactive login and authenticated contexts.

    ``launcher`` defaults to :func:`launch_browser`; tests pass a fake.
    """

    def __init__(
        self,
        store: CredentialStore | None = None,
        expiry_days: int = settings.SESSION_EXPIRY_DAYS,
        launcher=None,
    ):
        self.store = store if store is not None else FileCredentialStore()
        self.expiry_seconds = expiry_days * 24 * 60 * 60
        self._launch = launcher or launch_browser
        self._login: BrowserHandle | None = None
        self._login_page = None
        self._login_platform: str | None = None

    # -- Saved sessions -----------------------------------------------------

    def has_valid_session(self, platform: str) -> bool:
        data = self.store.load(platform)
        if data is None:
            return False
        if not data.is_valid(self.expiry_seconds):
            logger.info("Session for %s has expired", platform)
            return False
        return True

    def session_status(self) -> dict:
        status = {}
        for platform in PLATFORM_CONFIGS:
            data = self.store.load(platform)
            valid = data is not None and data.is_valid(self.expiry_seconds)
            status[platform] = {
                "valid": valid,
                "expires_at": data.expires_at(self.expiry_seconds) if valid else None,
            }
        return status

    async def load_session(self, platform: str, context) -> bool:
        """Add saved cookies for ``platform`` to ``context``; False if none usable."""
        data = self.store.load(platform)
        if data is None:
            logger.info("No session found for %s", platform)
            return False
        if not data.is_valid(self.expiry_seconds):
            logger.info("Session for %s has expired", platform)
            return False
        await context.add_cookies(data.cookies)
        logger.info("Loaded %d cookies for %s", len(data.cookies), platform)
        return True

    async def save_session(self, platform: str, context):
        cookies = await context.cookies()
        data = SessionData(
            cookies=[{k: c[k] for k in COOKIE_FIELDS if k in c} for c in cookies],
            timestamp=time.time(),
        )
        self.store.save(platform, data)
        logger.info("Saved session for %s with %d cookies", platform, len(cookies))

    def import_cookies(self, platform: str, cookies: list[dict]):
        """Store cookies exported from a regular browser as a saved session."""
        if not cookies:
            raise LoginSessionError(f"No {platform} cookies to import")
        self.store.save(platform, SessionData(cookies=cookies, timestamp=time.time()))
        logger.info("Imported %d cookies for %s", len(cookies), platform)

    def clear_session(self, platform: str) -> bool:
        cleared = self.store.clear(platform)
        if cleared:
            logger.info("Cleared session for %s", platform)
        return cleared

    def clear_all_sessions(self):
        for platform in PLATFORM_CONFIGS:
            self.clear_session(platform)

    # -- Interactive login --------------------------------------------------

    def is_login_active(self) -> bool:
        return self._login is not None

    async def start_login(self, platform: str) -> str:
        """Open a visible browser on the platform's login page."""
        if self._login is not None:
            raise LoginSessionError(
                "A login session is already active. Please complete or cancel it first."
            )
        config = PLATFORM_CONFIGS.get(platform)
        if config is None:
            raise LoginSessionError(f"Unknown platform: {platform}")

        logger.info("Starting login session for %s...", platform)
        try:
            pw, browser, context = await self._launch(headless=False, viewport=None)
        except Exception as e:
            raise LoginSessionError(f"Failed to start login session: {clean_error(e)}") from e

        self._login = BrowserHandle(pw, browser, context)
        self._login_platform = platform
        try:
            self._login_page = await context.new_page()
            await self._login_page.goto(
                config["login_url"], wait_until="domcontentloaded", timeout=60000,
            )
        except Exception as e:
            await self._cleanup_login()
            raise LoginSessionError(f"Failed to open {platform} login page: {clean_error(e)}") from e

        return f"Browser opened for {platform} login. Log in, then complete the session."

    async def complete_login(self, platform: str | None = None) -> tuple[bool, str]:
        """Save the login browser's cookies and close it.

        Returns ``(verified, message)``; cookies are saved even when the
        logged-in marker could not be found.
        """
        if self._login is None or self._login_page is None:
            raise LoginSessionError("No active login session")
        platform = platform or self._login_platform
        config = PLATFORM_CONFIGS.get(platform)
        if config is None:
            await self._cleanup_login()
            raise LoginSessionError(f"Unknown platform: {platform}")

        verified = False
        try:
            await self._login_page.wait_for_selector(config["check_selector"], timeout=5000)
            verified = True
        except Exception:
            logger.warning("Login check selector not found for %s", platform)

        try:
            await self.save_session(platform, self._login.context)
        except Exception as e:
            raise LoginSessionError(f"Failed to save session: {clean_error(e)}") from e
        finally:
            await self._cleanup_login()

        if verified:
            return True, f"Successfully saved {platform} session."
        return False, (
            f"Session saved for {platform}. Login status could not be verified, "
            "but cookies were saved. Try scraping to test."
        )

    async def cancel_login(self) -> str:
        if self._login is None:
            raise LoginSessionError("No active login session to cancel")
        await self._cleanup_login()
        return "Login session cancelled"

    async def _cleanup_login(self):
        if self._login is not None:
            await self._login.close()
        self._login = None
        self._login_page = None
        self._login_platform = None

    # -- Scraping contexts --------------------------------------------------

    async def create_authenticated_context(
        self, platform: str, headless: bool = settings.HEADLESS,
    ) -> BrowserHandle:
        """Launch a headless browser with any saved session for ``platform`` applied."""
        pw, browser, context = await self._launch(
            headless=headless, viewport={"width": 1920, "height": 1080},
        )
        handle = BrowserHandle(pw, browser, context)
        try:
            handle.has_session = await self.load_session(platform, context)
        except Exception:
            await handle.close()
            raise
        return handle
