"""
formatter.py — pure text derivations of an OrderRecord.

  format_item_code → category prefix + raw code
  render_text      → numbered canonical text used for copy and share
"""
from __future__ import annotations

from order_record import OrderRecord

# Checked in this order; the first matching set wins.
MOBILE_KEYWORDS   = ("手機", "手錶", "ipod", "pods", "phone")
COMPUTER_KEYWORDS = ("電腦", "mac", "ipad")

MOBILE_PREFIX   = "42"
COMPUTER_PREFIX = "45"

SHARE_TITLE = "訂單資訊"
TITLE_LINE  = f"📋 {SHARE_TITLE}"

_LINES = (
    ("store",     "1. 店別"),
    ("datetime",  "2. 日期時間"),
    ("itemCode",  "3. itemcode"),
    ("itemName",  "4. 品名"),
    ("bookingNo", "5. 訂貨編號"),
    ("invoiceNo", "6. 發票號碼"),
)


def category_prefix(name) -> str:
    lowered = "" if name is None else str(name).lower()
    if any(k in lowered for k in MOBILE_KEYWORDS):
        return MOBILE_PREFIX
    if any(k in lowered for k in COMPUTER_KEYWORDS):
        return COMPUTER_PREFIX
    return ""


def format_item_code(code, name) -> str:
    """
    Prefix *code* with its category ("42" mobile, "45" computer). Empty code
    stays empty. Non-string values from the service are rendered with str().
    """
    if code is None or code == "":
        return ""
    return category_prefix(name) + str(code)


def render_text(record: OrderRecord, with_title: bool = False) -> str:
    """
    Newline-joined numbered lines in fixed order.

    Booking and invoice lines appear only when non-empty; every line keeps
    its fixed ordinal label.
    """
    lines = [TITLE_LINE] if with_title else []
    for field_name, label in _LINES:
        if field_name == "itemCode":
            value = format_item_code(record.itemCode, record.itemName)
        else:
            value = getattr(record, field_name)
        if field_name in ("bookingNo", "invoiceNo") and not value:
            continue
        lines.append(f"{label}: {value}")
    return "\n".join(lines)
