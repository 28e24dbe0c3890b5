"""Term vectorization: tokenizes free text into lowercase terms and counts them."""

from __future__ import annotations

from collections import Counter

from sklearn.feature_extraction.text import CountVectorizer

from jira_predictor.core.config import TOKEN_PATTERN


class TermVectorizer:
    """Lowercase letter-run tokenizer backed by scikit-learn's ``CountVectorizer`` analyzer."""

    def __init__(self, token_pattern: str = TOKEN_PATTERN, stop_words: str | list[str] | None = None):
        self._analyzer = CountVectorizer(
            lowercase=True,
            token_pattern=token_pattern,
            stop_words=stop_words,
        ).build_analyzer()

    def tokens(self, text: str | None) -> list[str]:
        if not text:
            return []
        return self._analyzer(text)

    def term_frequencies(self, text: str | None) -> dict[str, int]:
        return dict(Counter(self.tokens(text)))


DEFAULT_VECTORIZER = TermVectorizer()
