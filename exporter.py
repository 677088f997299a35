"""
exporter.py — turns an OrderRecord into shareable output.

Share fallback chain (strict order, first success wins):
  1. native share: title + titled text + image
  2. native share: title + titled text, no image     (unless 1 was cancelled)
  3. clipboard copy + one manual-share notice

A user cancelling step 1 ends the chain quietly. Capabilities are probed on
every call through the ExportPlatform, never cached.
"""
from __future__ import annotations

import enum
import logging
from typing import Optional, Protocol

from formatter import SHARE_TITLE, render_text
from image_source import SelectedImage
from order_record import OrderRecord

logger = logging.getLogger(__name__)

MANUAL_SHARE_NOTICE = "已複製文字！請手動分享圖片"


class ShareCancelled(Exception):
    """The user declined the share. Not an error."""


class ClipboardUnavailable(Exception):
    """The clipboard refused the write (permission or unsupported)."""


class ShareTarget(Protocol):
    async def share(self, title: str, text: str, image: Optional[SelectedImage] = None) -> None: ...


class Clipboard(Protocol):
    async def write_text(self, text: str) -> None: ...


class ExportPlatform(Protocol):
    """Platform capabilities. Either getter may return None when unavailable."""

    def share_target(self) -> Optional[ShareTarget]: ...

    def clipboard(self) -> Optional[Clipboard]: ...

    async def notify(self, text: str) -> None: ...


class ShareOutcome(str, enum.Enum):
    SHARED      = "shared"        # step 1
    SHARED_TEXT = "shared_text"   # step 2
    CANCELLED   = "cancelled"
    MANUAL      = "manual"        # step 3


class Exporter:

    def __init__(self, platform: ExportPlatform) -> None:
        self._platform = platform

    async def copy_text(self, record: OrderRecord) -> bool:
        """Copy the untitled text. Failures are logged, never raised."""
        clipboard = self._platform.clipboard()
        if clipboard is None:
            logger.warning("Copy failed: no clipboard available")
            return False
        try:
            await clipboard.write_text(render_text(record))
        except ClipboardUnavailable as exc:
            logger.warning("Copy failed: %s", exc)
            return False
        except Exception as exc:
            logger.warning("Copy failed: %s", exc, exc_info=True)
            return False
        return True

    async def share(self, record: OrderRecord, image: Optional[SelectedImage]) -> ShareOutcome:
        text = render_text(record, with_title=True)
        target = self._platform.share_target()

        if target is not None:
            try:
                await target.share(SHARE_TITLE, text, image)
                return ShareOutcome.SHARED
            except ShareCancelled:
                logger.info("Share cancelled by user")
                return ShareOutcome.CANCELLED
            except Exception as exc:
                logger.warning("Share with image failed: %s", exc)

            try:
                await target.share(SHARE_TITLE, text)
                return ShareOutcome.SHARED_TEXT
            except Exception as exc:
                logger.warning("Text-only share failed: %s", exc)
        else:
            logger.info("No share capability; falling back to clipboard")

        await self.copy_text(record)
        try:
            await self._platform.notify(MANUAL_SHARE_NOTICE)
        except Exception as exc:
            logger.warning("Manual share notice could not be shown: %s", exc)
        return ShareOutcome.MANUAL
