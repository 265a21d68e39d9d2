"""
Comment Thread Scraper -- Streamlit entry point
===============================================
Paste a video/post URL (or a bare TikTok id), scrape every comment with its
replies, browse the thread tree and download the result.
"""

import logging

import streamlit as st

from config import settings
from utils.async_runner import run_async
from utils.nav import render_nav

settings.configure_logging()
logger = logging.getLogger(__name__)

st.set_page_config(
    page_title="Comment Thread Scraper",
    page_icon="💬",
    layout="wide",
    initial_sidebar_state="collapsed",
)

render_nav()

st.markdown("# Comment Thread Scraper")
st.markdown(
    "Extract comment threads (with replies) from TikTok, Instagram, Facebook and YouTube. "
    "TikTok uses the internal comment API; the others read the rendered page."
)

identifier = st.text_input(
    "Video URL or TikTok video ID",
    placeholder="https://www.tiktok.com/@username/video/1234567890",
)
headless = st.checkbox("Run browser headless", value=settings.HEADLESS)
scrape_btn = st.button("Start Scraping", type="primary", use_container_width=True)


def render_comment(comment, depth: int = 0):
    indent = "&nbsp;" * 6 * depth
    badge = " · *orphan reply*" if comment.is_orphan_reply else ""
    st.markdown(
        f"{indent}**{comment.nickname or comment.username}** "
        f"`@{comment.username}` · {comment.create_time}{badge}  \n"
        f"{indent}{comment.comment}",
        unsafe_allow_html=True,
    )


if scrape_btn and identifier.strip():
    from scrapers.orchestrator import scrape
    from utils.common import describe_failure, export_csv_bytes, export_json_bytes
    from utils.progress_ui import ProgressTracker

    tracker = ProgressTracker(st.empty())
    try:
        result = run_async(scrape(
            identifier.strip(),
            progress_callback=tracker.on_message,
            headless=headless,
        ))
    except Exception as e:
        logger.exception("Scrape failed for %s", identifier)
        st.error(describe_failure(e))
        st.stop()

    tracker.complete(result.total_count)
    st.session_state["last_scrape"] = result

    if result.needs_auth:
        st.warning(result.auth_message)
        st.page_link("pages/1_🔐_Sessions.py", label="Open Sessions")

    if result.comments:
        replies = sum(len(c.replies) for c in result.comments)
        m1, m2, m3 = st.columns(3)
        m1.metric("Comments", len(result.comments))
        m2.metric("Replies", replies)
        m3.metric("Orphan replies", sum(1 for c in result.comments if c.is_orphan_reply))

        if result.caption:
            st.markdown(f"**Caption:** {result.caption}")
        if result.video_url:
            st.markdown(f"**URL:** {result.video_url}")

        dl1, dl2 = st.columns(2)
        with dl1:
            st.download_button(
                "Export JSON",
                data=export_json_bytes(result),
                file_name="comments.json",
                mime="application/json",
                use_container_width=True,
            )
        with dl2:
            st.download_button(
                "Export CSV",
                data=export_csv_bytes(result),
                file_name="comments.csv",
                mime="text/csv",
                use_container_width=True,
            )

        for comment in result.comments:
            render_comment(comment)
            if comment.replies:
                with st.expander(f"{len(comment.replies)} replies"):
                    for reply in comment.replies:
                        render_comment(reply, depth=1)
    elif not result.needs_auth:
        st.info("No comments were found. The video may have no comments or comments may be disabled.")

elif scrape_btn:
    st.warning("Please enter a URL or video ID above.")
