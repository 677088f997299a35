"""
Tests for image_source.py.

Covers:
  - select(): explicit choice accepts anything; drops need an image/* type
  - a rejected drop changes nothing
  - preview handles are released exactly once (superseded or reset)
  - reset(): clears image and preview
"""
from __future__ import annotations

import pytest

from conftest import make_image
from image_source import ImageSource, is_image_type


@pytest.fixture
def released():
    return []


@pytest.fixture
def source(released):
    return ImageSource(on_release=released.append)


class TestSelect:
    def test_select_sets_image_and_preview(self, source):
        img = make_image()
        assert source.select(img) is True
        assert source.image is img
        assert source.preview is not None
        assert not source.preview.released

    def test_explicit_choice_not_type_filtered(self, source):
        assert source.select(make_image(name="scan.pdf", mime="application/pdf")) is True

    @pytest.mark.parametrize("mime", ["image/png", "image/jpeg", "image/heic"])
    def test_drop_accepts_images(self, source, mime):
        assert source.select(make_image(mime=mime), dropped=True) is True

    @pytest.mark.parametrize("mime", ["application/pdf", "text/plain", None, ""])
    def test_drop_rejects_non_images(self, source, mime):
        assert source.select(make_image(mime=mime), dropped=True) is False
        assert source.image is None

    def test_rejected_drop_keeps_previous_selection(self, source, released):
        first = make_image()
        source.select(first)
        handle = source.preview
        assert source.select(make_image(mime="text/plain"), dropped=True) is False
        assert source.image is first
        assert source.preview is handle
        assert released == []

    def test_preview_ref_from_file_id(self, source):
        source.select(make_image(file_id="AgACAgQAAxkBAAIB"))
        assert source.preview.ref == "AgACAgQAAxkBAAIB"

    def test_preview_ref_derived_from_content(self, source):
        source.select(make_image(data=b"a"))
        ref_a = source.preview.ref
        source.select(make_image(data=b"b"))
        assert source.preview.ref != ref_a


class TestRelease:
    def test_new_selection_releases_previous_handle(self, source, released):
        source.select(make_image(data=b"1"))
        old = source.preview
        source.select(make_image(data=b"2"))
        assert released == [old]
        assert old.released

    def test_reset_releases_once(self, source, released):
        source.select(make_image())
        handle = source.preview
        source.reset()
        source.reset()
        assert released == [handle]

    def test_repeated_selection_releases_each_handle_once(self, source, released):
        handles = []
        for i in range(4):
            source.select(make_image(data=bytes([i])))
            handles.append(source.preview)
        source.reset()
        assert released == handles

    def test_release_hook_errors_are_swallowed(self):
        def boom(_handle):
            raise RuntimeError("telegram down")

        src = ImageSource(on_release=boom)
        src.select(make_image())
        src.reset()
        assert src.image is None

    def test_no_hook_is_fine(self):
        src = ImageSource()
        src.select(make_image())
        src.reset()
        assert src.preview is None


class TestReset:
    def test_reset_from_empty(self, source, released):
        source.reset()
        assert source.image is None
        assert source.preview is None
        assert released == []

    def test_reset_clears_selection(self, source):
        source.select(make_image())
        source.reset()
        assert source.image is None
        assert source.preview is None


class TestIsImageType:
    def test_image(self):
        assert is_image_type("image/webp")

    def test_not_image(self):
        assert not is_image_type("video/mp4")
        assert not is_image_type(None)
