"""
order_record.py — the structured result of analysing one order photo.

A record is owned by exactly one workflow session. It is replaced wholesale
on every successful analysis and mutated field-by-field in edit mode.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Optional

# Display order — also the order of the numbered lines in formatter.render_text
FIELDS = ("store", "datetime", "itemCode", "itemName", "bookingNo", "invoiceNo")
OPTIONAL_FIELDS = ("bookingNo", "invoiceNo")

FIELD_LABELS = {
    "store":     "店別",
    "datetime":  "時間",
    "itemCode":  "代碼",
    "itemName":  "品名",
    "bookingNo": "訂編",
    "invoiceNo": "發票",
}


@dataclass
class OrderRecord:
    """Fields extracted by the analysis service. Values are trusted as returned."""
    store: str
    datetime: str
    itemCode: str
    itemName: str
    bookingNo: Optional[str] = None
    invoiceNo: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Optional[dict]) -> "OrderRecord":
        """
        Build a record from the service's `data` object.

        No validation: missing required fields become "" and unknown keys are
        dropped. Non-string values are passed through untouched.
        """
        payload = payload if isinstance(payload, dict) else {}
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in payload.items() if k in known}
        for name in FIELDS:
            if name not in OPTIONAL_FIELDS:
                values.setdefault(name, "")
        return cls(**values)

    def set_field(self, name: str, value: str) -> None:
        if name not in FIELDS:
            raise KeyError(f"Unknown order field: {name}")
        setattr(self, name, value)

    def has(self, name: str) -> bool:
        """Absent and empty-string are equivalent for display."""
        return bool(getattr(self, name))
