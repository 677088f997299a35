"""
bot.py — Telegram bot handlers.

All visual formatting is delegated to style.py.
All export channels are delegated to channels.py.
Session state is kept in-memory per user_id: one WorkflowController each.

Each selected image gets one card message (the preview). Every later state
of that selection — analysing, result, error — is rendered by editing that
card. Buttons on any older card are stale and only get a toast.
"""
from __future__ import annotations

import logging
from typing import Optional

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.error import TelegramError
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

import config
import style
from analysis_client import MSG_ERROR, AnalysisClient
from channels import TelegramPlatform
from exporter import Exporter, ShareOutcome
from image_source import ImageSource, PreviewHandle, SelectedImage, is_image_type
from order_record import FIELD_LABELS, FIELDS
from workflow import Phase, WorkflowController

logger = logging.getLogger(__name__)

# ── Callback data ──────────────────────────────────────────────────────────────
CB_ANALYZE = "wf:analyze"
CB_RESET   = "wf:reset"
CB_EDIT    = "wf:edit"
CB_SHARE   = "wf:share"
CB_COPY    = "wf:copy"
CB_FIELD   = "field:"          # + field name


# ── Session ────────────────────────────────────────────────────────────────────

_sessions: dict[int, WorkflowController] = {}


def _release_hook(app: Application, chat_id: int):
    """Strip the buttons from a superseded preview card."""
    def release(handle: PreviewHandle) -> None:
        if handle.message_id is None:
            return
        app.create_task(_strip_keyboard(app, chat_id, handle.message_id))
    return release


async def _strip_keyboard(app: Application, chat_id: int, message_id: int) -> None:
    try:
        await app.bot.edit_message_reply_markup(chat_id=chat_id, message_id=message_id, reply_markup=None)
    except TelegramError as exc:
        # Usually "message is not modified" when the card was already re-rendered
        logger.debug("Could not strip keyboard of message %d: %s", message_id, exc)


def get_session(user_id: int, chat_id: int, app: Application) -> WorkflowController:
    if user_id not in _sessions:
        _sessions[user_id] = WorkflowController(
            client=AnalysisClient(config.ANALYSIS_API_URL),
            exporter=Exporter(TelegramPlatform(app.bot, chat_id)),
            source=ImageSource(on_release=_release_hook(app, chat_id)),
        )
    return _sessions[user_id]


def _session_for(update: Update, context: ContextTypes.DEFAULT_TYPE) -> WorkflowController:
    return get_session(update.effective_user.id, update.effective_chat.id, context.application)


# ── Keyboards ──────────────────────────────────────────────────────────────────

def preview_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[
        InlineKeyboardButton("🔄 重新", callback_data=CB_RESET),
        InlineKeyboardButton("🔍 開始識別", callback_data=CB_ANALYZE),
    ]])


def reset_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[InlineKeyboardButton("🔄 重新", callback_data=CB_RESET)]])


def failed_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[
        InlineKeyboardButton("🔄 重新", callback_data=CB_RESET),
        InlineKeyboardButton("🔁 再試一次", callback_data=CB_ANALYZE),
    ]])


def result_keyboard(editing: bool) -> InlineKeyboardMarkup:
    if editing:
        field_buttons = [
            InlineKeyboardButton(f"{i}. {FIELD_LABELS[name]}", callback_data=f"{CB_FIELD}{name}")
            for i, name in enumerate(FIELDS, 1)
        ]
        rows = [field_buttons[i:i + 3] for i in range(0, len(field_buttons), 3)]
        rows.append([InlineKeyboardButton("💾 儲存", callback_data=CB_EDIT)])
        return InlineKeyboardMarkup(rows)
    return InlineKeyboardMarkup([
        [
            InlineKeyboardButton("📝 修改", callback_data=CB_EDIT),
            InlineKeyboardButton("📤 分享", callback_data=CB_SHARE),
            InlineKeyboardButton("📋 複製", callback_data=CB_COPY),
        ],
        [InlineKeyboardButton("🔄 重新", callback_data=CB_RESET)],
    ])


def card_for(session: WorkflowController) -> tuple[str, Optional[InlineKeyboardMarkup]]:
    """Text + keyboard for the session's current phase."""
    if session.phase is Phase.RESULT and session.record is not None:
        return style.result_card(session.record, session.editing), result_keyboard(session.editing)
    if session.phase is Phase.FAILED:
        return style.error_card(session.error or ""), failed_keyboard()
    if session.phase is Phase.ANALYZING:
        return style.analyzing(), None
    if session.phase is Phase.SELECTED:
        return style.preview_card(), preview_keyboard()
    return style.reset_done(), None


async def _render_card(bot, chat_id: int, session: WorkflowController) -> None:
    preview = session.source.preview
    if preview is None or preview.message_id is None:
        return
    try:
        text, keyboard = card_for(session)
    except Exception as exc:
        logger.error("Could not build card for phase %s: %s", session.phase, exc, exc_info=True)
        text, keyboard = style.error_card(MSG_ERROR), reset_keyboard()
    try:
        await bot.edit_message_text(
            chat_id=chat_id,
            message_id=preview.message_id,
            text=text,
            parse_mode="MarkdownV2",
            reply_markup=keyboard,
        )
    except TelegramError as exc:
        logger.warning("Failed to render card %d: %s", preview.message_id, exc)


# ── Handlers ───────────────────────────────────────────────────────────────────

async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await update.message.reply_text(style.welcome(), parse_mode="MarkdownV2")


async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await update.message.reply_text(style.help_text(), parse_mode="MarkdownV2")


async def cmd_reset(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    session = _session_for(update, context)
    session.reset()
    await update.message.reply_text(style.reset_done(), parse_mode="MarkdownV2")


async def handle_photo(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    photo = update.message.photo[-1]
    try:
        photo_file = await context.bot.get_file(photo.file_id)
        data = bytes(await photo_file.download_as_bytearray())
    except TelegramError as exc:
        logger.warning("Could not download photo %s: %s", photo.file_unique_id, exc)
        await update.message.reply_text(style.not_a_photo(), parse_mode="MarkdownV2")
        return
    image = SelectedImage(
        data=data,
        file_name=f"{photo.file_unique_id}.jpg",
        mime_type="image/jpeg",
        file_id=photo.file_id,
    )
    await _select(update, context, image, dropped=False)


async def handle_document(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    doc = update.message.document
    # Non-image drops are ignored without a reply and without downloading
    if not is_image_type(doc.mime_type):
        logger.info("Ignoring dropped %s (%s)", doc.file_name, doc.mime_type)
        return
    try:
        doc_file = await context.bot.get_file(doc.file_id)
        data = bytes(await doc_file.download_as_bytearray())
    except TelegramError as exc:
        logger.warning("Could not download %s: %s", doc.file_name, exc)
        await update.message.reply_text(style.not_a_photo(), parse_mode="MarkdownV2")
        return
    image = SelectedImage(
        data=data,
        file_name=doc.file_name or f"{doc.file_unique_id}.jpg",
        mime_type=doc.mime_type,
    )
    await _select(update, context, image, dropped=True)


async def _select(
    update: Update,
    context: ContextTypes.DEFAULT_TYPE,
    image: SelectedImage,
    dropped: bool,
) -> None:
    session = _session_for(update, context)
    if not session.select(image, dropped=dropped):
        return
    msg = await update.message.reply_text(
        style.preview_card(),
        parse_mode="MarkdownV2",
        reply_markup=preview_keyboard(),
    )
    session.source.preview.message_id = msg.message_id


async def handle_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    query   = update.callback_query
    session = _session_for(update, context)
    data    = query.data
    chat_id = update.effective_chat.id

    preview = session.source.preview
    if preview is None or query.message is None or query.message.message_id != preview.message_id:
        await query.answer(style.TOAST_STALE)
        return

    # ── Reset ─────────────────────────────────────────────────────────────────
    if data == CB_RESET:
        await query.answer()
        session.reset()
        await query.edit_message_text(style.reset_done(), parse_mode="MarkdownV2")
        return

    # ── Analyse (runs in the background so reset/select stay responsive) ────
    if data == CB_ANALYZE:
        await query.answer()
        if session.phase not in (Phase.SELECTED, Phase.FAILED):
            return
        await query.edit_message_text(style.analyzing(), parse_mode="MarkdownV2")
        context.application.create_task(_run_analysis(context.bot, chat_id, session))
        return

    # ── Edit mode ─────────────────────────────────────────────────────────────
    if data == CB_EDIT:
        await query.answer()
        if session.toggle_edit():
            await _render_card(context.bot, chat_id, session)
        return

    if data.startswith(CB_FIELD):
        await query.answer()
        name = data[len(CB_FIELD):]
        if session.arm_field(name):
            await query.message.reply_text(
                style.field_prompt(name, getattr(session.record, name)),
                parse_mode="MarkdownV2",
            )
        return

    # ── Export ────────────────────────────────────────────────────────────────
    if data == CB_SHARE:
        outcome = await session.share()
        await query.answer(style.TOAST_SHARED if outcome in (ShareOutcome.SHARED, ShareOutcome.SHARED_TEXT) else None)
        return

    if data == CB_COPY:
        copied = await session.copy_text()
        await query.answer(None if copied else style.TOAST_COPY_FAILED)
        return

    await query.answer()


async def _run_analysis(bot, chat_id: int, session: WorkflowController) -> None:
    if await session.analyze():
        await _render_card(bot, chat_id, session)


async def handle_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    session = _session_for(update, context)
    name = session.armed_field
    if name and session.edit(name, update.message.text):
        await _render_card(context.bot, update.effective_chat.id, session)
        return
    await update.message.reply_text(style.not_a_photo(), parse_mode="MarkdownV2")


# ── App factory ────────────────────────────────────────────────────────────────

def build_application() -> Application:
    app = Application.builder().token(config.TELEGRAM_BOT_TOKEN).build()

    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("help",  cmd_help))
    app.add_handler(CommandHandler("reset", cmd_reset))
    app.add_handler(MessageHandler(filters.PHOTO,                   handle_photo))
    app.add_handler(MessageHandler(filters.Document.ALL,            handle_document))
    app.add_handler(CallbackQueryHandler(handle_callback))
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_text))
    return app
