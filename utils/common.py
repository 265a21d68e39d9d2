"""
Shared utilities for the comment scraper.
"""

import csv
import io
import json
from datetime import datetime, timezone

from scrapers.errors import ScraperError

RETRY_BASE_DELAY = 1.0   # seconds
RETRY_MAX_DELAY = 4.0    # seconds

FLAT_FIELDNAMES = [
    "comment_id", "parent_comment_id", "is_reply", "is_orphan_reply",
    "username", "nickname", "comment", "create_time", "avatar", "total_reply",
]


def backoff_delay(attempt: int, base: float = RETRY_BASE_DELAY,
                  cap: float = RETRY_MAX_DELAY) -> float:
    """Exponential backoff for a zero-based retry attempt: 1s, 2s, 4s, 4s..."""
    return min(base * 2 ** attempt, cap)


def format_timestamp(ts) -> str:
    """Convert a Unix timestamp to a UTC ISO-8601 string truncated to seconds."""
    try:
        if isinstance(ts, str) and ts.strip():
            ts = float(ts)
        if isinstance(ts, (int, float)) and ts > 0:
            return datetime.fromtimestamp(int(ts), tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")
    except (OverflowError, OSError, ValueError):
        pass
    return str(ts) if ts else ""


def clean_error(e: Exception) -> str:
    """Strip verbose Playwright browser launch logs from error messages."""
    msg = str(e)
    for marker in ("Browser logs:", "=== logs ==="):
        idx = msg.find(marker)
        if idx != -1:
            msg = msg[:idx].strip()
    lines = msg.split("\n")
    clean = [ln for ln in lines if not ln.strip().startswith("<launch") and "--disable-" not in ln]
    return "\n".join(clean).strip() or "Browser closed unexpectedly"


def describe_failure(e: Exception) -> str:
    """User-facing text for a failed scrape."""
    if isinstance(e, ScraperError):
        return str(e)
    return f"Scraping failed: {clean_error(e)}"


def _cookie(name, value, domain, path="/") -> dict:
    return {"name": name, "value": str(value), "domain": domain, "path": path}


def _netscape_cookies(content: str, domain_filter: str) -> list[dict]:
    # domain, include_subdomains, path, secure, expiry, name, value
    found = []
    for line in content.splitlines():
        fields = line.strip().split("\t")
        if line.lstrip().startswith("#") or len(fields) < 7:
            continue
        domain, path, name, value = fields[0], fields[2], fields[5], fields[6]
        if name and value and domain_filter in domain:
            found.append(_cookie(name, value, domain, path))
    return found


def _json_cookies(data, domain_filter: str) -> list[dict]:
    # Saved session files wrap the list: {"cookies": [...], "timestamp": ...}
    if isinstance(data, dict) and isinstance(data.get("cookies"), list):
        data = data["cookies"]
    if isinstance(data, dict):
        default_domain = f".{domain_filter}"
        return [_cookie(k, v, default_domain) for k, v in data.items() if v]
    if not isinstance(data, list):
        return []

    found = []
    for item in data:
        if not isinstance(item, dict):
            continue
        domain = item.get("domain") or f".{domain_filter}"
        if item.get("name") and item.get("value") and domain_filter in domain:
            found.append(_cookie(item["name"], item["value"], domain, item.get("path", "/")))
    return found


def load_cookies_as_list(file_content: str, domain_filter: str) -> list[dict]:
    """Parse a cookie export into Playwright cookie dicts for ``domain_filter``.

    Accepts a Netscape cookies.txt, a JSON list of cookie objects, a saved
    session file, or a flat ``{name: value}`` JSON object. Unreadable input
    yields an empty list.
    """
    content = file_content.strip()
    if not content:
        return []
    if content.startswith("#") or "\t" in content.splitlines()[0]:
        return _netscape_cookies(content, domain_filter)
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        return []
    return _json_cookies(data, domain_filter)


def flatten_comments(comments) -> list[dict]:
    """Flatten a Comments result (or iterable of Comment) into one row per
    comment/reply, parents first, replies directly after their parent."""
    items = getattr(comments, "comments", comments)
    rows = []
    for c in items:
        rows.append(_flat_row(c))
        for r in c.replies:
            rows.append(_flat_row(r))
    return rows


def _flat_row(c) -> dict:
    return {
        "comment_id": c.comment_id,
        "parent_comment_id": c.parent_comment_id or "",
        "is_reply": c.parent_comment_id is not None,
        "is_orphan_reply": c.is_orphan_reply,
        "username": c.username,
        "nickname": c.nickname,
        "comment": c.comment,
        "create_time": c.create_time,
        "avatar": c.avatar,
        "total_reply": c.total_reply,
    }


def export_csv_bytes(comments) -> bytes:
    """Export a Comments result to CSV bytes (for the Streamlit download button)."""
    rows = flatten_comments(comments)
    if not rows:
        return b""
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=FLAT_FIELDNAMES, extrasaction="ignore")
    writer.writeheader()
    writer.writerows(rows)
    return output.getvalue().encode("utf-8")


def export_json_bytes(comments, indent: int = 4) -> bytes:
    """Export a Comments result to JSON bytes."""
    return json.dumps(comments.to_dict(), indent=indent, ensure_ascii=False).encode("utf-8")
