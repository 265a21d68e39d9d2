"""Tests for saved sessions and authenticated browser contexts."""

import asyncio
import json
import time

import pytest

from tests.fakes import FakeContext

DAY = 24 * 60 * 60
COOKIES = [{"name": "sessionid", "value": "abc", "domain": ".tiktok.com", "path": "/"}]


class FakeBrowser:
    def __init__(self):
        self.closed = False

    async def close(self):
        self.closed = True


class FakePlaywright:
    def __init__(self):
        self.stopped = False

    async def stop(self):
        self.stopped = True


class FakeLauncher:
    def __init__(self, context=None):
        self.context = context or FakeContext()
        self.browser = FakeBrowser()
        self.playwright = FakePlaywright()
        self.calls = []

    async def __call__(self, headless=True, viewport=None):
        self.calls.append({"headless": headless, "viewport": viewport})
        return self.playwright, self.browser, self.context


class FakeLoginPage:
    def __init__(self, logged_in=True):
        self.logged_in = logged_in
        self.gotos = []

    async def goto(self, url, **kwargs):
        self.gotos.append(url)

    async def wait_for_selector(self, selector, timeout=None):
        if not self.logged_in:
            raise TimeoutError(f"waiting for {selector}")


def _manager(store=None, launcher=None):
    from scrapers.session import MemoryCredentialStore, SessionManager

    return SessionManager(store=store or MemoryCredentialStore(), launcher=launcher)


class TestSessionData:
    def test_validity_window(self):
        from scrapers.session import SessionData

        data = SessionData(cookies=COOKIES, timestamp=1000.0)
        assert data.is_valid(7 * DAY, now=1000.0 + 6 * DAY)
        assert not data.is_valid(7 * DAY, now=1000.0 + 7 * DAY)

    def test_no_cookies_is_invalid(self):
        from scrapers.session import SessionData

        assert not SessionData(cookies=[], timestamp=time.time()).is_valid(DAY)


class TestFileCredentialStore:
    def test_save_and_load(self, tmp_path):
        from scrapers.session import FileCredentialStore, SessionData

        store = FileCredentialStore(tmp_path)
        store.save("tiktok", SessionData(cookies=COOKIES, timestamp=123.0))

        raw = json.loads((tmp_path / "tiktok-session.json").read_text())
        assert raw == {"cookies": COOKIES, "timestamp": 123.0}
        loaded = store.load("tiktok")
        assert loaded.cookies == COOKIES
        assert loaded.timestamp == 123.0

    def test_missing_and_corrupt(self, tmp_path):
        from scrapers.session import FileCredentialStore

        store = FileCredentialStore(tmp_path)
        assert store.load("instagram") is None
        (tmp_path / "instagram-session.json").write_text("{not json")
        assert store.load("instagram") is None

    def test_clear(self, tmp_path):
        from scrapers.session import FileCredentialStore, SessionData

        store = FileCredentialStore(tmp_path)
        store.save("facebook", SessionData(cookies=COOKIES, timestamp=1.0))
        assert store.clear("facebook")
        assert not store.path_for("facebook").exists()
        assert store.clear("facebook")


class TestSessionManager:
    def test_expired_session_not_loaded(self):
        from scrapers.session import SessionData

        manager = _manager()
        manager.store.save("tiktok", SessionData(cookies=COOKIES, timestamp=time.time() - 8 * DAY))
        context = FakeContext()

        assert not manager.has_valid_session("tiktok")
        assert asyncio.run(manager.load_session("tiktok", context)) is False
        assert context.added_cookies == []

    def test_load_session_adds_cookies(self):
        manager = _manager()
        manager.import_cookies("tiktok", COOKIES)
        context = FakeContext()

        assert asyncio.run(manager.load_session("tiktok", context)) is True
        assert context.added_cookies == COOKIES

    def test_import_requires_cookies(self):
        from scrapers.errors import LoginSessionError

        with pytest.raises(LoginSessionError):
            _manager().import_cookies("tiktok", [])

    def test_session_status(self):
        manager = _manager()
        manager.import_cookies("instagram", COOKIES)
        status = manager.session_status()

        assert set(status) == {"tiktok", "instagram", "facebook", "youtube"}
        assert status["instagram"]["valid"] is True
        assert status["instagram"]["expires_at"] > time.time()
        assert status["tiktok"] == {"valid": False, "expires_at": None}

    def test_clear_all_sessions(self):
        manager = _manager()
        manager.import_cookies("tiktok", COOKIES)
        manager.import_cookies("youtube", COOKIES)
        manager.clear_all_sessions()
        assert not any(s["valid"] for s in manager.session_status().values())

    def test_save_session_keeps_cookie_fields(self):
        context = FakeContext(cookies=[dict(COOKIES[0], sameParty=False, secure=True)])
        manager = _manager()
        asyncio.run(manager.save_session("tiktok", context))

        saved = manager.store.load("tiktok").cookies
        assert saved == [dict(COOKIES[0], secure=True)]


class TestAuthenticatedContext:
    def test_applies_saved_session(self):
        launcher = FakeLauncher()
        manager = _manager(launcher=launcher)
        manager.import_cookies("tiktok", COOKIES)

        handle = asyncio.run(manager.create_authenticated_context("tiktok", headless=True))
        assert handle.has_session is True
        assert launcher.context.added_cookies == COOKIES
        assert launcher.calls == [{"headless": True, "viewport": {"width": 1920, "height": 1080}}]

        asyncio.run(handle.close())
        assert launcher.browser.closed
        assert launcher.playwright.stopped

    def test_guest_context(self):
        launcher = FakeLauncher()
        handle = asyncio.run(_manager(launcher=launcher).create_authenticated_context("facebook"))
        assert handle.has_session is False


class TestInteractiveLogin:
    def test_complete_without_login_raises(self):
        from scrapers.errors import LoginSessionError

        with pytest.raises(LoginSessionError):
            asyncio.run(_manager().complete_login())

    def test_cancel_without_login_raises(self):
        from scrapers.errors import LoginSessionError

        with pytest.raises(LoginSessionError):
            asyncio.run(_manager().cancel_login())

    def test_unknown_platform(self):
        from scrapers.errors import LoginSessionError

        with pytest.raises(LoginSessionError):
            asyncio.run(_manager(launcher=FakeLauncher()).start_login("myspace"))

    def test_full_login_flow(self):
        login_page = FakeLoginPage(logged_in=True)
        launcher = FakeLauncher(FakeContext(page=login_page, cookies=COOKIES))
        manager = _manager(launcher=launcher)

        async def flow():
            await manager.start_login("tiktok")
            assert manager.is_login_active()
            return await manager.complete_login()

        verified, message = asyncio.run(flow())
        assert verified is True
        assert "tiktok" in message
        assert login_page.gotos == ["https://www.tiktok.com/login"]
        assert launcher.calls[0]["headless"] is False
        assert not manager.is_login_active()
        assert manager.has_valid_session("tiktok")
        assert launcher.browser.closed

    def test_unverified_login_still_saves(self):
        launcher = FakeLauncher(FakeContext(page=FakeLoginPage(logged_in=False), cookies=COOKIES))
        manager = _manager(launcher=launcher)

        async def flow():
            await manager.start_login("instagram")
            return await manager.complete_login()

        verified, _ = asyncio.run(flow())
        assert verified is False
        assert manager.has_valid_session("instagram")

    def test_second_login_rejected(self):
        from scrapers.errors import LoginSessionError

        launcher = FakeLauncher(FakeContext(page=FakeLoginPage()))
        manager = _manager(launcher=launcher)

        async def flow():
            await manager.start_login("tiktok")
            with pytest.raises(LoginSessionError):
                await manager.start_login("youtube")
            return await manager.cancel_login()

        assert asyncio.run(flow()) == "Login session cancelled"
        assert not manager.is_login_active()

    def test_complete_with_unknown_platform_closes_browser(self):
        from scrapers.errors import LoginSessionError

        launcher = FakeLauncher(FakeContext(page=FakeLoginPage(), cookies=COOKIES))
        manager = _manager(launcher=launcher)

        async def flow():
            await manager.start_login("tiktok")
            with pytest.raises(LoginSessionError):
                await manager.complete_login("myspace")

        asyncio.run(flow())
        assert not manager.is_login_active()
        assert launcher.browser.closed
        assert manager.store.load("myspace") is None


class TestCredentialStoreInterface:
    def test_incomplete_store_cannot_be_built(self):
        from scrapers.session import CredentialStore

        class LoadOnlyStore(CredentialStore):
            def load(self, platform):
                return None

        with pytest.raises(TypeError):
            LoadOnlyStore()
