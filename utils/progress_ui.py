"""
Progress UI -- live scrape log rendered into a Streamlit placeholder.
"""

import re
import time


class ProgressTracker:
    """
    Collects scraper progress messages and re-renders a compact status panel
    (current step, page count, recent messages) on every update.
    """

    MAX_LINES = 8

    def __init__(self, placeholder):
        self.placeholder = placeholder
        self.lines: list[str] = []
        self.pages = 0
        self.current_action = "Starting..."
        self.done = False
        self._started = time.time()
        self._render()

    def on_message(self, msg: str):
        raw = str(msg)
        # Indented lines are sub-status under the current step
        is_detail = raw.startswith(" ")
        msg = raw.strip()
        if not msg:
            return

        page = re.match(r"^Fetching page (\d+)", msg)
        if page:
            self.pages = int(page.group(1))
        if not is_detail:
            self.current_action = msg

        self.lines.append(msg)
        self.lines = self.lines[-self.MAX_LINES:]
        self._render()

    def complete(self, total: int):
        self.done = True
        elapsed = time.time() - self._started
        self.current_action = f"Done: {total} comments in {elapsed:.1f}s"
        self._render()

    def _render(self):
        header = f"**{self.current_action}**"
        if self.pages and not self.done:
            header += f"  \npages fetched: {self.pages}"
        body = "\n".join(f"- {line.strip()}" for line in self.lines)
        self.placeholder.markdown(f"{header}\n\n{body}" if body else header)
