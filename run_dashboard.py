"""Convenience launcher for the Streamlit app.

Usage:
  streamlit run run_dashboard.py

Automatically imports every module in ``jira_predictor/pages`` so each page
decorated with ``@register_page`` registers itself.
"""

import logging
from importlib import import_module
from pathlib import Path

import streamlit as st

from jira_predictor.app import main

st.set_page_config(layout="wide")
logger = logging.getLogger(__name__)

PAGES_DIR = Path(__file__).parent / "jira_predictor" / "pages"
for py in sorted(PAGES_DIR.glob("[!_]*.py")):
    mod_name = f"jira_predictor.pages.{py.stem}"
    try:
        import_module(mod_name)
    except Exception as e:  # pragma: no cover
        logger.error("Failed importing page %s: %s", mod_name, e)

if __name__ == "__main__":
    main()
