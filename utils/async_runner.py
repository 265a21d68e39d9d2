"""
Async runner -- execute a scrape coroutine from Streamlit's sync script.

The coroutine runs on its own thread with a fresh event loop (aiohttp and
Playwright both need a real running task). Streamlit's ScriptRunContext is
attached to that thread so progress callbacks can update placeholders.
"""

import asyncio
import logging
import threading

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 1800  # seconds; a full walk of a large video can be slow


def _get_streamlit_ctx():
    try:
        from streamlit.runtime.scriptrunner import get_script_run_ctx
    except ImportError:
        return None
    return get_script_run_ctx()


def _attach_streamlit_ctx(thread, ctx):
    if ctx is None:
        return
    from streamlit.runtime.scriptrunner import add_script_run_ctx
    add_script_run_ctx(thread, ctx)


def run_async(coro, timeout: float = DEFAULT_TIMEOUT):
    """Run ``coro`` to completion on a worker thread and return its result.

    Exceptions raised by the coroutine are re-raised in the caller. A
    TimeoutError is raised if the thread is still running after ``timeout``.
    """
    outcome = {}

    def _target():
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            outcome["result"] = loop.run_until_complete(coro)
        except BaseException as e:
            outcome["error"] = e
        finally:
            loop.close()

    thread = threading.Thread(target=_target, name="scrape-runner", daemon=True)
    _attach_streamlit_ctx(thread, _get_streamlit_ctx())
    thread.start()
    thread.join(timeout=timeout)

    if thread.is_alive():
        logger.error("Async task still running after %ss", timeout)
        raise TimeoutError(f"Task did not finish within {timeout}s")
    if "error" in outcome:
        raise outcome["error"]
    return outcome.get("result")


class LoopThread:
    """A long-lived event loop on a daemon thread.

    Playwright objects are bound to the loop that created them, so work that
    spans several Streamlit reruns (an interactive login) must keep using
    one loop.
    """

    def __init__(self):
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self.loop.run_forever, name="session-loop", daemon=True,
        )
        self._thread.start()

    def run(self, coro, timeout: float = DEFAULT_TIMEOUT):
        future = asyncio.run_coroutine_threadsafe(coro, self.loop)
        return future.result(timeout=timeout)

    def stop(self):
        self.loop.call_soon_threadsafe(self.loop.stop)
