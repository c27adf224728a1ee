"""
FeedHub Backend — Mixed JSON / Multipart Request Bodies
========================================================

Signup and post creation accept either a JSON object or a multipart form
with an optional file. `read_payload()` normalises both into plain string
fields plus MediaUpload objects, so the services never see the transport.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from fastapi import Request
from starlette.datastructures import UploadFile

from feedhub.exceptions import ValidationError
from feedhub.services.storage_service import MediaUpload

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


@dataclass
class Payload:
    fields: Dict[str, str] = field(default_factory=dict)
    files: Dict[str, MediaUpload] = field(default_factory=dict)

    def get(self, name: str) -> Optional[str]:
        return self.fields.get(name)

    def file(self, name: str) -> Optional[MediaUpload]:
        return self.files.get(name)


async def read_payload(request: Request) -> Payload:
    """
    Parse the request body as a form or as JSON, based on Content-Type.

    Empty file parts (a form field submitted with no file chosen) are dropped.
    Non-string JSON values are ignored, except numbers and booleans, which
    are stringified.

    Raises:
        ValidationError: body is not valid JSON or not a JSON object
    """
    content_type = request.headers.get("content-type", "").lower()
    payload = Payload()

    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        try:
            for name, value in form.multi_items():
                if isinstance(value, UploadFile):
                    content = await value.read()
                    if not content and not value.filename:
                        continue
                    payload.files[name] = MediaUpload(
                        filename=value.filename or "upload",
                        content_type=value.content_type or "application/octet-stream",
                        content=content,
                    )
                else:
                    payload.fields[name] = value
        finally:
            await form.close()
        return payload

    raw = await request.body()
    if not raw.strip():
        return payload
    try:
        data = json.loads(raw)
    except ValueError:
        raise ValidationError(message="request body must be valid JSON")
    if not isinstance(data, dict):
        raise ValidationError(message="request body must be a JSON object")

    for name, value in data.items():
        if isinstance(value, str):
            payload.fields[name] = value
        elif isinstance(value, (bool, int, float)):
            payload.fields[name] = str(value)
    return payload
