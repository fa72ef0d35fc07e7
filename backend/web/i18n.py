"""
Minimal message catalog for UI labels.

Lookup falls back to the default locale and finally to the key itself, so a
missing translation shows up as its key rather than breaking a page.
"""
from __future__ import annotations

import os
from typing import Dict, Optional

DEFAULT_LOCALE = "en"

MESSAGES: Dict[str, Dict[str, str]] = {
    "en": {
        "commissions.requested": "requested",
        "commissions.confirmed": "confirmed",
        "commissions.paid": "paid",
        "commissions.title": "Commissions",
        "commissions.empty": "No commissions yet.",
        "commissions.project": "Project",
        "commissions.value": "Value",
        "commissions.status": "Status",
        "commissions.created_at": "Created",
    },
    "vi": {
        "commissions.requested": "đã yêu cầu",
        "commissions.confirmed": "đã xác nhận",
        "commissions.paid": "đã thanh toán",
        "commissions.title": "Hoa hồng",
        "commissions.empty": "Chưa có hoa hồng nào.",
        "commissions.project": "Dự án",
        "commissions.value": "Giá trị",
        "commissions.status": "Trạng thái",
        "commissions.created_at": "Ngày tạo",
    },
}


def active_locale() -> str:
    loc = (os.getenv("PORTAL_LOCALE") or DEFAULT_LOCALE).strip().lower()
    return loc if loc in MESSAGES else DEFAULT_LOCALE


def translate(key: str, locale: Optional[str] = None) -> str:
    loc = locale or active_locale()
    catalog = MESSAGES.get(loc) or {}
    if key in catalog:
        return catalog[key]
    return MESSAGES[DEFAULT_LOCALE].get(key, key)


__all__ = ["DEFAULT_LOCALE", "MESSAGES", "active_locale", "translate"]
