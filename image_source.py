"""
image_source.py — holds the one selected order image and its preview handle.

Two ways in:
  photo message     → explicit choice, accepted as-is (Telegram already
                      delivers it as an image)
  document message  → the drag-and-drop path (Telegram Desktop turns dropped
                      files into documents); rejected unless the declared
                      media type is image/*

The preview handle is released exactly once, whether it is superseded by a new
selection or dropped by reset().
"""
from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class SelectionRejected(Exception):
    """A dropped file whose media type is not an image."""


@dataclass
class SelectedImage:
    data: bytes
    file_name: str = "order.jpg"
    mime_type: Optional[str] = "image/jpeg"
    file_id: Optional[str] = None      # Telegram file_id, reusable for re-sending


@dataclass
class PreviewHandle:
    """
    Renderable reference to the selected image.

    `ref` is derived 1:1 from the image. `message_id` is filled in by the bot
    once the preview card carrying the action buttons has been sent.
    """
    ref: str
    message_id: Optional[int] = None
    released: bool = False


class ImageSource:

    def __init__(self, on_release: Optional[Callable[[PreviewHandle], None]] = None) -> None:
        self._on_release = on_release
        self.image: Optional[SelectedImage] = None
        self.preview: Optional[PreviewHandle] = None

    def select(self, image: SelectedImage, dropped: bool = False) -> bool:
        """
        Replace the current image. Returns False (no state change) when a
        dropped file is not an image.
        """
        try:
            if dropped:
                _check_dropped(image)
        except SelectionRejected as exc:
            logger.info("Ignoring dropped file: %s", exc)
            return False

        self._release()
        self.image = image
        self.preview = PreviewHandle(ref=_preview_ref(image))
        return True

    def reset(self) -> None:
        self._release()
        self.image = None
        self.preview = None

    def _release(self) -> None:
        handle = self.preview
        if handle is None or handle.released:
            return
        handle.released = True
        if self._on_release:
            try:
                self._on_release(handle)
            except Exception as exc:
                logger.warning("Preview release hook failed for %s: %s", handle.ref, exc)


def is_image_type(mime_type: Optional[str]) -> bool:
    return (mime_type or "").startswith("image/")


def _check_dropped(image: SelectedImage) -> None:
    if not is_image_type(image.mime_type):
        raise SelectionRejected(f"{image.file_name!r} has media type {image.mime_type!r}")


def _preview_ref(image: SelectedImage) -> str:
    if image.file_id:
        return image.file_id
    return f"{image.file_name}:{hashlib.sha1(image.data).hexdigest()[:12]}"
