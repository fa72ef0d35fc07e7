"""
Base Component Class for Commission Portal UI Components

Pages are assembled from small Python components instead of a template
engine; every component renders to an HTML string and escapes its inputs.
Components carry an optional locale so labels come from the portal catalog
(`backend.web.i18n`) instead of being hard-coded per page.
"""

from typing import Any, Dict, Optional
import html

from ..i18n import translate


class Component:
    """Base class for all UI components."""

    locale: Optional[str] = None

    def render(self) -> str:
        """Render the component as an HTML string."""
        raise NotImplementedError("Subclasses must implement render()")

    def __str__(self) -> str:
        # Lets parents embed children directly in f-strings.
        return self.render()

    def t(self, key: str) -> str:
        """Escaped catalog label in this component's locale."""
        return self.escape(translate(key, self.locale))

    @staticmethod
    def escape(text: Optional[Any]) -> str:
        """Escape HTML entities; None renders as an empty string."""
        if text is None:
            return ""
        return html.escape(str(text), quote=True)

    @staticmethod
    def classes(*names: Optional[str], **conditionals: bool) -> str:
        """Join CSS class names, skipping empty ones.

        Example:
            >>> Component.classes("badge", "", "badge-green", muted=True, active=False)
            "badge badge-green muted"
        """
        picked = [name for name in names if name]
        picked += [name for name, on in conditionals.items() if on]
        return " ".join(picked)

    @staticmethod
    def attributes(data: Optional[Dict[str, Any]] = None, **attrs: Any) -> str:
        """Render HTML attributes.

        `class_` maps to `class`, other underscores become hyphens
        (aria_current -> aria-current). `data` entries render as `data-*`
        attributes. True gives a bare attribute; False, None and "" are dropped.
        """
        pairs = [(name[:-1] if name.endswith("_") else name.replace("_", "-"), value) for name, value in attrs.items()]
        pairs += [("data-" + name.replace("_", "-"), value) for name, value in (data or {}).items()]
        out = []
        for name, value in pairs:
            if value is None or value is False or value == "":
                continue
            out.append(name if value is True else f'{name}="{Component.escape(value)}"')
        return " ".join(out)
