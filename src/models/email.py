"""Email document model produced by the result formatter."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class EmailDocument(BaseModel):
    """A rendered, transport-agnostic email.

    The formatter fills all three parts; the email service wraps them in a
    ``multipart/alternative`` MIME message.
    """

    model_config = ConfigDict(frozen=True)

    subject: str
    html_body: str
    text_body: str
