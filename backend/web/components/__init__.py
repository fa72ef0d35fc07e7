# Commission Portal Component System
# Pure Python Components for type-safe HTML generation

from .base import Component
from .layout import Layout
from .navigation import Navigation
from .commissions import CommissionTable, StatusBadge

__all__ = [
    "Component",
    "Layout",
    "Navigation",
    "CommissionTable",
    "StatusBadge",
]
