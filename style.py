"""
style.py — every piece of text the bot sends.

Design language:
  • Cards edited in place: preview → analysing → result / error
  • Unicode box-drawing dividers
  • MarkdownV2 throughout (plain text only where a copy must be verbatim)
"""
from __future__ import annotations

from typing import Optional

from formatter import format_item_code
from order_record import FIELD_LABELS, FIELDS, OPTIONAL_FIELDS, OrderRecord

# ── Escape ────────────────────────────────────────────────────────────────────

def esc(text: str) -> str:
    """Escape all MarkdownV2 special characters."""
    for ch in r"\_*[]()~`>#+-=|{}.!":
        text = text.replace(ch, f"\\{ch}")
    return text


# ── Visual constants ──────────────────────────────────────────────────────────

DIV   = "━━━━━━━━━━━━━━━━━━━━━━━━━━"
SDIV  = "┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄"

# Plain-text toasts (answerCallbackQuery does not take MarkdownV2)
TOAST_STALE       = "這張卡片已過期，請使用最新的訂單卡片"
TOAST_SHARED      = "已分享 📤"
TOAST_COPY_FAILED = "無法複製，請手動選取文字"


# ══════════════════════════════════════════════════════════════════════════════
# START / HELP
# ══════════════════════════════════════════════════════════════════════════════

def welcome() -> str:
    return (
        f"🦷 *OLA2 × LABUBU*\n"
        f"{DIV}\n\n"
        f"頑皮幫手：自動識別訂單\n\n"
        f"📸 傳一張訂單照片給我，或直接把圖片檔拖進對話\n"
        f"🔍 按「開始識別」，我會把欄位整理好\n"
        f"📤 確認無誤後一鍵分享或複製\n\n"
        f"{DIV}\n"
        f"_💡 確保照片清晰，Labubu 幫你搞定 🦷_"
    )


def help_text() -> str:
    return (
        f"📖 *使用說明*\n"
        f"{DIV}\n\n"
        f"*1️⃣  上傳訂單圖片*\n"
        f"_拍照傳送，或以檔案方式傳送圖片_\n\n"
        f"*2️⃣  開始識別*\n"
        f"_店別、時間、代碼、品名、訂編、發票_\n\n"
        f"*3️⃣  修改*\n"
        f"_點欄位按鈕後直接輸入新內容，按儲存完成_\n\n"
        f"*4️⃣  分享 / 複製*\n"
        f"_分享會附上原始圖片；失敗時改為複製文字_\n\n"
        f"{DIV}\n"
        f"_指令：/start · /help · /reset_"
    )


def not_a_photo() -> str:
    return (
        f"📸 *上傳訂單圖片*\n"
        f"{SDIV}\n"
        f"我需要一張訂單照片才能識別\\.\n"
        f"_點擊或拖放來開始 🐾_"
    )


# ══════════════════════════════════════════════════════════════════════════════
# WORKFLOW CARDS
# ══════════════════════════════════════════════════════════════════════════════

def preview_card() -> str:
    return (
        f"🖼️ *訂單預覽*\n"
        f"{SDIV}\n"
        f"圖片已收到\\. 按 🔍 開始識別，或 🔄 重新選擇\\."
    )


def analyzing() -> str:
    return (
        f"🔍 *訂單識別*\n"
        f"{SDIV}\n"
        f"⏳ 識別中\\.\\.\\."
    )


def reset_done() -> str:
    return (
        f"🔄 *已重新開始*\n"
        f"{SDIV}\n"
        f"_傳一張新的訂單照片吧 🐾_"
    )


def error_card(message: str) -> str:
    """The service's message is shown verbatim."""
    return (
        f"💢 {esc(message)} 💢\n"
        f"{SDIV}\n"
        f"_可以直接重試，不用重新上傳圖片_"
    )


def _field_value(record: OrderRecord, name: str, editing: bool) -> str:
    value = getattr(record, name)
    if name == "itemCode" and not editing:
        return f"`{esc(format_item_code(record.itemCode, record.itemName))}`"
    if not value:
        return "_選填_" if name in OPTIONAL_FIELDS else "_（空白）_"
    return esc(str(value))


def result_card(record: OrderRecord, editing: bool = False) -> str:
    """
    Numbered fields. Booking and invoice lines show only when filled in,
    except in edit mode where every field is listed.
    """
    header = "📝 *修改中*" if editing else "🦴 *識別收穫*"
    lines = [header, DIV]
    for i, name in enumerate(FIELDS, 1):
        if name in OPTIONAL_FIELDS and not editing and not record.has(name):
            continue
        label = f"*{i}\\. {FIELD_LABELS[name]}:*"
        if name == "itemName":
            lines.append(f"{label}\n{_field_value(record, name, editing)}")
        else:
            lines.append(f"{label} {_field_value(record, name, editing)}")
    if editing:
        lines += [SDIV, "_點下方欄位後直接輸入新內容，完成後按 💾 儲存_"]
    return "\n".join(lines)


def field_prompt(name: str, current: Optional[str]) -> str:
    current_line = f"目前：`{esc(str(current))}`" if current else "目前：_（空白）_"
    return (
        f"✏️ *{FIELD_LABELS[name]}*\n"
        f"{SDIV}\n"
        f"{current_line}\n"
        f"_請直接輸入新的內容_"
    )
