"""Rendering of aggregate search results for email and terminal output.

Transforms an :class:`AggregateResult` into human-readable documents.
Two output modes are supported:

- **Email**: an :class:`EmailDocument` with subject, HTML part and
  plain-text part, one section per provider.
- **Text report**: a plain-text report used by the CLI.

Rendering is deterministic: sections follow the result's provider order
and items keep their provider order, so the same result always renders
to the same bytes.  All provider-supplied text is HTML-escaped in the
HTML part.
"""

from __future__ import annotations

import html

from src.models.email import EmailDocument
from src.models.search import AggregateResult, ResultItem
from src.utils.logging import get_logger
from src.utils.text_normalizer import make_snippet

_SUBJECT_PREFIX = "Knowledge Base Search Results"

_PROVIDER_LABELS = {
    "stackoverflow": "Stack Overflow",
    "reddit": "Reddit",
}


def provider_label(provider: str) -> str:
    """Return the display name for *provider*."""
    return _PROVIDER_LABELS.get(provider, provider.replace("_", " ").title())


def _single_line(text: str) -> str:
    # Header values must not contain line breaks.
    return " ".join(text.split())


class OutputFormatter:
    """Renders aggregate results as email documents and text reports."""

    def __init__(self, snippet_length: int = 200) -> None:
        self._snippet_length = snippet_length
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def format_for_email(self, result: AggregateResult, query: str) -> EmailDocument:
        """Render *result* for *query* as an email document.

        Parameters
        ----------
        result:
            The aggregate result to render.
        query:
            The query the result belongs to, shown in subject and heading.

        Returns
        -------
        EmailDocument
            Subject line plus HTML and plain-text bodies.
        """
        query_line = _single_line(query)
        document = EmailDocument(
            subject=f"{_SUBJECT_PREFIX}: {query_line}",
            html_body=self._render_html(result, query_line),
            text_body=self._render_text(result, query_line, with_snippets=False),
        )
        self._logger.debug(
            "email_document_formatted",
            query=query_line,
            providers=result.providers(),
            items=result.total_items(),
        )
        return document

    def format_text_report(self, result: AggregateResult, query: str) -> str:
        """Render *result* as a plain-text report with body snippets."""
        return self._render_text(result, _single_line(query), with_snippets=True)

    # ------------------------------------------------------------------
    # Rendering helpers
    # ------------------------------------------------------------------

    def _render_html(self, result: AggregateResult, query: str) -> str:
        parts: list[str] = [f"<h2>Search Results for: {html.escape(query)}</h2>", "<div>"]
        for provider, items in result.results.items():
            parts.append(f"<h3>{html.escape(provider_label(provider))} Results:</h3>")
            if not items:
                parts.append("<p>No results.</p>")
            for item in items:
                parts.append(self._render_html_item(item))
        parts.append("</div>")
        return "\n".join(parts) + "\n"

    @staticmethod
    def _render_html_item(item: ResultItem) -> str:
        title = html.escape(item.title or item.link or "(untitled)")
        if item.link:
            heading = f'<h4><a href="{html.escape(item.link, quote=True)}">{title}</a></h4>'
        else:
            heading = f"<h4>{title}</h4>"
        return f"<div>{heading}<p>Score: {item.score}</p></div>"

    def _render_text(self, result: AggregateResult, query: str, with_snippets: bool) -> str:
        lines: list[str] = [f"Search Results for: {query}", ""]
        for provider, items in result.results.items():
            label = f"{provider_label(provider)} Results"
            lines.append(label)
            lines.append("-" * len(label))
            if not items:
                lines.append("  No results.")
            for position, item in enumerate(items, start=1):
                lines.append(f"{position:>3}. {item.title or '(untitled)'}  [score {item.score}]")
                if item.link:
                    lines.append(f"     {item.link}")
                if with_snippets and item.body:
                    lines.append(f"     {make_snippet(item.body, self._snippet_length)}")
            lines.append("")
        return "\n".join(lines)


_default_formatter = OutputFormatter()


def format_for_email(result: AggregateResult, query: str) -> EmailDocument:
    """Render *result* for *query* with the default formatter."""
    return _default_formatter.format_for_email(result, query)
