"""Request body encoding.

Turns the body value, form fields and attachments of a request into what
httpx needs to send it, and fixes up the content-type header accordingly.
"""

import json
from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field

from .log_config import logger
from .types import Attachment

JSON_CONTENT_TYPE = "application/json"

# httpx multipart part: (field name, (filename, content))
MultipartPart = tuple[str, tuple[str | None, bytes | str]]


class EncodedBody(BaseModel):
    """Wire-ready payload of a request.

    Exactly one of ``content`` and ``files`` is set, or neither when the
    request has no body.
    """

    model_config = ConfigDict(frozen=True)

    content: bytes | str | None = None
    files: tuple[MultipartPart, ...] | None = None
    headers: dict[str, str] = Field(default_factory=dict)

    @property
    def is_multipart(self) -> bool:
        return self.files is not None


def is_structured(value: Any) -> bool:
    """Mappings and sequences (but not strings or bytes) are serialized."""
    return isinstance(value, Mapping | list | tuple)


def encode_body(
    body: Any,
    headers: Mapping[str, str],
    attachments: tuple[Attachment, ...] = (),
    form_fields: Mapping[str, str] | None = None,
    stringify_json: Callable[[Any], str] | None = None,
) -> EncodedBody:
    """Encode a request body.

    Rules, first match wins:

    1. Attachments or form fields present: multipart form data with the form
       fields first and the attachments after them, in insertion order. Any
       content-type header is dropped so httpx can add the boundary.
    2. ``body`` is None: no payload.
    3. Mapping body and a ``form-urlencoded`` content type: a
       ``key=value`` query string.
    4. Structured body: ``stringify_json(body)``; content type defaults to JSON.
    5. Anything else: bytes are sent as-is, other values through ``str()``.

    Args:
        body: The body value.
        headers: Request headers with lower-cased names. Not mutated.
        attachments: File parts for a multipart body.
        form_fields: Plain fields for a multipart body.
        stringify_json: JSON serializer, ``json.dumps`` semantics.

    Returns:
        EncodedBody: The payload and the final header map.
    """
    final_headers = dict(headers)
    form_fields = form_fields or {}

    if attachments or form_fields:
        parts: list[MultipartPart] = [
            (name, (None, str(value))) for name, value in form_fields.items()
        ]
        parts.extend(
            (a.name, (a.filename or a.name, a.file)) for a in attachments
        )
        final_headers.pop("content-type", None)
        logger.trace(
            f"Encoding multipart body: {len(form_fields)} field(s), "
            f"{len(attachments)} attachment(s)"
        )
        return EncodedBody(files=tuple(parts), headers=final_headers)

    if body is None:
        return EncodedBody(headers=final_headers)

    if is_structured(body):
        content_type = final_headers.get("content-type", "")
        if "form-urlencoded" in content_type and isinstance(body, Mapping):
            return EncodedBody(
                content=urlencode(body, doseq=True), headers=final_headers
            )

        stringify = stringify_json or json.dumps
        if not content_type:
            final_headers["content-type"] = JSON_CONTENT_TYPE
        return EncodedBody(content=stringify(body), headers=final_headers)

    if isinstance(body, bytes | bytearray):
        return EncodedBody(content=bytes(body), headers=final_headers)
    return EncodedBody(content=str(body), headers=final_headers)