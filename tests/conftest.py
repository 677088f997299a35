"""
Shared pytest fixtures.

Export tests run against an in-memory FakePlatform that records every share,
clipboard write and notice, so the fallback chain can be asserted step by step.
"""
from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

import pytest

# ── Make the project root importable without installing the package ────────────
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("TELEGRAM_BOT_TOKEN", "123456:TEST")
os.environ.setdefault("ANALYSIS_API_URL", "http://analysis.test")

from exporter import ClipboardUnavailable, ShareCancelled  # noqa: E402
from image_source import SelectedImage  # noqa: E402
from order_record import OrderRecord  # noqa: E402


def make_image(name: str = "order.jpg", mime: Optional[str] = "image/jpeg",
               data: bytes = b"\xff\xd8fake-jpeg", file_id: Optional[str] = None) -> SelectedImage:
    return SelectedImage(data=data, file_name=name, mime_type=mime, file_id=file_id)


def make_record(**overrides) -> OrderRecord:
    fields = {
        "store": "台北店",
        "datetime": "2024-01-01 10:00",
        "itemCode": "1234",
        "itemName": "iPhone 手機殼",
    }
    fields.update(overrides)
    return OrderRecord(**fields)


class FakeShareTarget:
    """Fails/cancels according to a script of outcomes, one per call."""

    def __init__(self, script: Optional[list] = None) -> None:
        self.script = list(script or [])
        self.calls: list[tuple] = []

    async def share(self, title, text, image=None):
        self.calls.append((title, text, image))
        outcome = self.script.pop(0) if self.script else None
        if outcome == "cancel":
            raise ShareCancelled("user dismissed the share sheet")
        if outcome == "fail":
            raise RuntimeError("share failed")


class FakeClipboard:

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.writes: list[str] = []

    async def write_text(self, text):
        if self.fail:
            raise ClipboardUnavailable("permission denied")
        self.writes.append(text)


class FakePlatform:

    def __init__(self, target: Optional[FakeShareTarget] = None,
                 clipboard: Optional[FakeClipboard] = None) -> None:
        self.target = target
        self.clip = clipboard
        self.notices: list[str] = []
        self.probes = 0

    def share_target(self):
        self.probes += 1
        return self.target

    def clipboard(self):
        return self.clip

    async def notify(self, text):
        self.notices.append(text)


@pytest.fixture
def image() -> SelectedImage:
    return make_image()


@pytest.fixture
def record() -> OrderRecord:
    return make_record()
