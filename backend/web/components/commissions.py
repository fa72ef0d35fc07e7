"""
Commission list components.

Renders commission rows with the shared display formatters so dates, amounts
and statuses look the same wherever they appear.
"""

from typing import Any, Dict, List, Optional

from .base import Component
from ..formatting import format_date, format_status, format_value, status_color


class StatusBadge(Component):
    """Colored, localized status label."""

    def __init__(self, status: str, locale: Optional[str] = None):
        self.status = status or ""
        self.locale = locale

    def render(self) -> str:
        color = status_color(self.status)
        attrs = self.attributes(
            class_=self.classes("badge", f"badge-{color}"),
            data={"status": self.status},
        )
        return f"<span {attrs}>{self.escape(format_status(self.status, self.locale))}</span>"


class CommissionTable(Component):
    """Table of commissions; shows an empty-state message without rows."""

    def __init__(self, rows: List[Dict[str, Any]], locale: Optional[str] = None):
        self.rows = rows or []
        self.locale = locale

    def _render_row(self, row: Dict[str, Any]) -> str:
        value = format_value(row.get("value"), str(row.get("currency") or "USD"))
        return f"""
            <tr>
                <td>{self.escape(row.get("project_name") or "")}</td>
                <td class="num">{self.escape(value)}</td>
                <td>{StatusBadge(str(row.get("status") or ""), self.locale)}</td>
                <td>{self.escape(format_date(row.get("created_at")))}</td>
            </tr>"""

    def render(self) -> str:
        if not self.rows:
            return f'<p class="empty-state">{self.t("commissions.empty")}</p>'
        body = "".join(self._render_row(r) for r in self.rows)
        return f"""
        <table class="commission-table">
            <thead>
                <tr>
                    <th>{self.t("commissions.project")}</th>
                    <th>{self.t("commissions.value")}</th>
                    <th>{self.t("commissions.status")}</th>
                    <th>{self.t("commissions.created_at")}</th>
                </tr>
            </thead>
            <tbody>{body}
            </tbody>
        </table>"""
