"""Progress banner for long-running Streamlit fetches and prediction batches."""

from __future__ import annotations

from collections.abc import Callable

import streamlit as st

ProgressCallback = Callable[[str, int | None, int | None], None]


class ProgressReporter:
    """Render a status banner and progress bar; ``callback`` matches the service and engine hooks."""

    def __init__(self, title: str):
        self._container = st.container()
        self._container.info(title)
        self._message = self._container.empty()
        self._bar = self._container.progress(0.0)
        self._done = False

    def callback(self, message: str, current: int | None = None, total: int | None = None) -> None:
        if self._done:
            return
        self._message.write(message)
        if current is not None and total:
            self._bar.progress(min(max(current / total, 0.0), 1.0))

    def complete(self, message: str) -> None:
        if self._done:
            return
        self._bar.progress(1.0)
        self._container.success(message)
        self._done = True

    def error(self, message: str) -> None:
        if self._done:
            return
        self._container.error(message)
        self._done = True
