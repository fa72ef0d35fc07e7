"""
Navigation Component for the Commission Portal

Role-based sidebar that adapts to the visitor (anonymous / user / admin).
"""

from typing import Any, Dict, List, Optional, Tuple

from .base import Component

NavItem = Tuple[str, str]  # (href, label)

_NAV_BY_ROLE: Dict[str, List[NavItem]] = {
    "admin": [
        ("/admin/projects/my-projects", "My projects"),
    ],
    "user": [
        ("/dashboard", "Dashboard"),
        ("/commissions", "Commissions"),
    ],
}

_PUBLIC_NAV: List[NavItem] = [
    ("/", "Home"),
    ("/sign-in", "Sign in"),
]


class Navigation(Component):
    """Sidebar navigation with role-based menu items."""

    def __init__(self, user: Optional[Dict[str, Any]] = None, current_path: str = "/"):
        """
        Args:
            user: User dict with optional 'role' ("admin" | "user") and 'email'
            current_path: The current URL path for active link highlighting
        """
        self.user = user
        self.current_path = current_path

    def _items(self) -> List[NavItem]:
        if not self.user:
            return _PUBLIC_NAV
        return _NAV_BY_ROLE.get(str(self.user.get("role") or "user"), _NAV_BY_ROLE["user"])

    def _is_active(self, href: str) -> bool:
        if href == "/":
            return self.current_path == "/"
        return self.current_path == href or self.current_path.startswith(href + "/")

    def _render_link(self, href: str, label: str) -> str:
        active = self._is_active(href)
        attrs = self.attributes(
            href=href,
            class_=self.classes("nav-link", active=active),
            aria_current="page" if active else None,
        )
        return f"<a {attrs}>{self.escape(label)}</a>"

    def render(self) -> str:
        links = "".join(self._render_link(href, label) for href, label in self._items())
        footer = ""
        if self.user:
            footer = f"""
            <div class="sidebar-footer">
                <div class="user-email">{self.escape(self.user.get("email", ""))}</div>
                <div class="user-role">{self.escape(self.user.get("role", ""))}</div>
            </div>"""
        return f"""
    <aside class="sidebar" id="sidebar" aria-label="Sidebar">
        <nav class="sidebar-nav" role="navigation" aria-label="Main navigation">
            <div class="sidebar-items">{links}</div>{footer}
        </nav>
    </aside>"""
