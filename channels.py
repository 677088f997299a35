"""
channels.py — Telegram implementations of the export capabilities.

  ChatShareTarget      → sends image + caption to the share chat, producing a
                         forwardable message (Telegram's own forward sheet does
                         the actual sharing)
  CopyButtonClipboard  → sends the text with a CopyTextButton; tapping it writes
                         to the device clipboard
  TelegramPlatform     → probes both on every call from the live config
"""
from __future__ import annotations

import logging
from typing import Optional

from telegram import Bot, CopyTextButton, InlineKeyboardButton, InlineKeyboardMarkup, InputFile
from telegram.error import Forbidden, TelegramError

import config
from exporter import ClipboardUnavailable, ShareCancelled
from image_source import SelectedImage

logger = logging.getLogger(__name__)

# Bot API limit for CopyTextButton.text
COPY_TEXT_MAX = 256


class ChatShareTarget:

    def __init__(self, bot: Bot, chat_id: int) -> None:
        self._bot = bot
        self.chat_id = chat_id

    async def share(self, title: str, text: str, image: Optional[SelectedImage] = None) -> None:
        """
        Post the order to the share chat. The title line is already part of
        *text*; *title* only names an uploaded file.

        Forbidden (bot blocked or removed from the chat) means the user said
        no, and is reported as ShareCancelled.
        """
        try:
            if image is not None:
                photo = image.file_id or InputFile(image.data, filename=f"{title}.jpg")
                await self._bot.send_photo(chat_id=self.chat_id, photo=photo, caption=text)
            else:
                await self._bot.send_message(chat_id=self.chat_id, text=text)
        except Forbidden as exc:
            raise ShareCancelled(str(exc)) from exc


class CopyButtonClipboard:

    def __init__(self, bot: Bot, chat_id: int) -> None:
        self._bot = bot
        self.chat_id = chat_id

    async def write_text(self, text: str) -> None:
        if len(text) > COPY_TEXT_MAX:
            raise ClipboardUnavailable(
                f"text is {len(text)} chars, copy button holds at most {COPY_TEXT_MAX}"
            )
        keyboard = InlineKeyboardMarkup([[
            InlineKeyboardButton("📋 點我複製", copy_text=CopyTextButton(text=text)),
        ]])
        try:
            await self._bot.send_message(chat_id=self.chat_id, text=text, reply_markup=keyboard)
        except TelegramError as exc:
            raise ClipboardUnavailable(str(exc)) from exc


class TelegramPlatform:
    """Export capabilities for one private chat."""

    def __init__(self, bot: Bot, chat_id: int) -> None:
        self._bot = bot
        self.chat_id = chat_id

    def share_target(self) -> Optional[ChatShareTarget]:
        if not config.SHARE_ENABLED:
            return None
        return ChatShareTarget(self._bot, config.SHARE_CHAT_ID or self.chat_id)

    def clipboard(self) -> Optional[CopyButtonClipboard]:
        return CopyButtonClipboard(self._bot, self.chat_id)

    async def notify(self, text: str) -> None:
        await self._bot.send_message(chat_id=self.chat_id, text=text)
