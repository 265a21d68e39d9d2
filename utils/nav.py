"""
Shared navigation bar -- single source of truth for all pages.
"""

import streamlit as st


# All pages in display order
PAGES = [
    ("Home.py", "Scrape"),
    ("pages/1_🔐_Sessions.py", "Sessions"),
]


def render_nav():
    """Render the horizontal navigation bar used on every page."""
    cols = st.columns(len(PAGES))
    for col, (path, label) in zip(cols, PAGES):
        with col:
            st.page_link(path, label=label)
    st.markdown("---")
