"""
analysis_client.py — the single network call of the workflow.

POST {base_url}/api/analyze-simple with a multipart body holding one field,
`image`. The service answers:

    {"success": true,  "data": {...order fields...}}
    {"success": false, "error": "message shown to the user"}

Every failure (service-reported, HTTP, non-JSON body, network) surfaces as a
single AnalysisError carrying a human-readable message. No retries.
"""
from __future__ import annotations

import asyncio
import json
import logging

import aiohttp

from image_source import SelectedImage
from order_record import OrderRecord

logger = logging.getLogger(__name__)

ANALYZE_PATH = "/api/analyze-simple"

MSG_FAILED = "識別失敗"
MSG_ERROR  = "識別過程發生錯誤"


class AnalysisError(Exception):
    """Analysis did not produce a record. `message` is safe to show verbatim."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AnalysisClient:

    def __init__(self, base_url: str) -> None:
        self._url = base_url.rstrip("/") + ANALYZE_PATH

    @property
    def url(self) -> str:
        return self._url

    async def analyze(self, image: SelectedImage) -> OrderRecord:
        """Send *image* and return the parsed record, or raise AnalysisError."""
        try:
            body = await self._post(image)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError, OSError) as exc:
            logger.error("Analysis request to %s failed: %s", self._url, exc)
            raise AnalysisError(MSG_ERROR) from exc

        if not isinstance(body, dict):
            logger.error("Analysis service returned a non-object body: %r", str(body)[:200])
            raise AnalysisError(MSG_ERROR)

        if not body.get("success"):
            message = body.get("error") or MSG_FAILED
            logger.error("Analysis service reported failure: %s", message)
            raise AnalysisError(str(message))

        return OrderRecord.from_payload(body.get("data"))

    # ── HTTP helper ───────────────────────────────────────────────────────────

    async def _post(self, image: SelectedImage):
        form = aiohttp.FormData()
        form.add_field(
            "image",
            image.data,
            filename=image.file_name,
            content_type=image.mime_type or "application/octet-stream",
        )
        async with aiohttp.ClientSession() as session:
            async with session.post(self._url, data=form) as resp:
                text = await resp.text()
        # The body is read whatever the status or content type
        return json.loads(text)
