"""Text normalization utilities for search queries and result snippets.

This module handles two distinct normalization concerns:

1. **Query normalization** -- Trims and case-folds a raw search string so
   that "  Python ", "PYTHON" and "python" all resolve to the same cache key.

2. **Snippet preparation** -- Stack Overflow returns question bodies as
   HTML and Reddit self-posts can run to thousands of characters.  Plain
   text renderings (CLI report, text/plain email part) strip markup and
   truncate to a short preview.
"""

import html
import re

_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")

DEFAULT_SNIPPET_LENGTH = 200


def normalize_query(raw_query: str) -> str:
    """Normalize a raw search query into its cache key form.

    Leading/trailing whitespace is removed and the string is lowercased.
    Interior whitespace is preserved exactly.  The function is idempotent:
    ``normalize_query(normalize_query(q)) == normalize_query(q)``.

    Args:
        raw_query: The query as typed by the user.

    Returns:
        The normalized query.  May be empty if the input was blank; callers
        are responsible for rejecting empty queries.
    """
    return raw_query.strip().lower()


def strip_html(text: str) -> str:
    """Remove HTML tags and unescape entities, collapsing runs of whitespace.

    Args:
        text: HTML fragment such as a Stack Overflow question body.

    Returns:
        Single-line plain text.
    """
    without_tags = _TAG_RE.sub(" ", text)
    unescaped = html.unescape(without_tags)
    return _WHITESPACE_RE.sub(" ", unescaped).strip()


def make_snippet(text: str, limit: int = DEFAULT_SNIPPET_LENGTH) -> str:
    """Return a plain-text preview of *text* at most *limit* characters long.

    An ellipsis is appended when the text was truncated.
    """
    plain = strip_html(text)
    if len(plain) <= limit:
        return plain
    return plain[:limit].rstrip() + "..."
