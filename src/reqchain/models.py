# reqchain/models.py
"""Normalized response envelope returned by every successful request.

The envelope decouples callers and hooks from httpx: headers are a plain
lower-cased dict, the body is decoded once, and after-response hooks can
produce modified copies with ``response.model_copy(update=...)``.
"""

import re
from collections.abc import Callable
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field

from .log_config import logger

_CHARSET_RE = re.compile(r"charset=([^\s;]+)", re.IGNORECASE)


class Response(BaseModel):
    """A fully-read HTTP response.

    Attributes:
        status: HTTP status code.
        ok: True for 2xx statuses.
        status_text: Reason phrase sent by the server.
        url: Final URL of the exchange.
        headers: Response headers with lower-cased names.
        type: Content type without parameters (e.g. ``application/json``).
        charset: Charset from the content type, ``utf-8`` when absent.
        text: The raw body text.
        body: The decoded JSON body when applicable, otherwise ``text``.
        raw: The underlying ``httpx.Response``, if any.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    status: int
    ok: bool
    status_text: str = ""
    url: str = ""
    headers: dict[str, str] = Field(default_factory=dict)
    type: str = ""
    charset: str = "utf-8"
    text: str = ""
    body: Any = None
    raw: httpx.Response | None = Field(default=None, exclude=True, repr=False)

    @property
    def status_code(self) -> int:
        return self.status

    def get(self, header: str) -> str | None:
        """Case-insensitive header lookup."""
        return self.headers.get(header.lower())

    @classmethod
    def from_httpx(
        cls,
        response: httpx.Response,
        parse_json: Callable[[str], Any] | None = None,
    ) -> "Response":
        """Build an envelope from a fully-read ``httpx.Response``.

        The body is JSON-decoded only when the content type carries a JSON
        marker and the text is non-empty. A decoding failure is not an error:
        the raw text is kept as the body.

        Args:
            response: The httpx response; its content must already be read.
            parse_json: JSON decoder to use, ``json.loads`` semantics.

        Returns:
            Response: The normalized envelope.
        """
        content_type = response.headers.get("content-type", "")
        text = response.text
        body: Any = text
        if parse_json is not None and text and is_json_content_type(content_type):
            try:
                body = parse_json(text)
            except Exception as e:
                logger.warning(
                    f"Could not decode JSON body ({e}); keeping the response text."
                )

        return cls(
            status=response.status_code,
            ok=response.is_success,
            status_text=response.reason_phrase,
            url=_response_url(response),
            headers={k.lower(): v for k, v in response.headers.items()},
            type=content_type.split(";")[0].strip(),
            charset=extract_charset(content_type),
            text=text,
            body=body,
            raw=response,
        )


def is_json_content_type(content_type: str) -> bool:
    content_type = content_type.lower()
    return "application/json" in content_type or "+json" in content_type


def extract_charset(content_type: str) -> str:
    match = _CHARSET_RE.search(content_type)
    return match.group(1).strip() if match else "utf-8"


def _response_url(response: httpx.Response) -> str:
    try:
        return str(response.url)
    except RuntimeError:
        # Responses built by hand have no request attached
        return ""
