"""Streamlit entry point: page registry and sidebar router."""

from __future__ import annotations

import streamlit as st

PAGES = {}

PREFERRED_ORDER = (
    "Resolve Time Prediction",
    "Setup / Connection",
)


def register_page(label):
    def decorator(func):
        PAGES[label] = func
        return func

    return decorator


def ordered_pages() -> list[str]:
    ordered = [name for name in PREFERRED_ORDER if name in PAGES]
    return ordered + sorted(name for name in PAGES if name not in PREFERRED_ORDER)


def main():
    st.sidebar.title("Resolve Time Predictor")
    pages = ordered_pages()
    if not pages:
        st.write("No pages registered yet.")
        return
    # Until a repository is loaded, open on the setup page
    if "Setup / Connection" in pages and "issue_repository" not in st.session_state:
        default = pages.index("Setup / Connection")
    else:
        default = 0
    page = st.sidebar.selectbox("Page", pages, index=default)
    PAGES[page]()


if __name__ == "__main__":
    main()
