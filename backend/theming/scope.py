"""Global style scope: the property bag on a rendering root, rendered as a `:root` stylesheet."""
from __future__ import annotations

import re
from typing import Iterator, Mapping

# Built-in look of the registry UI (surgical teal on dark surfaces).
DEFAULT_STYLE_VARIABLES: dict[str, str] = {
    "--color-primary": "#00a0a0",
    "--color-secondary": "#0057e6",
    "--color-accent": "#1ab1b1",
    "--color-surface": "#1e262c",
    "--color-background": "#252f36",
    "--color-text": "#e8e9ea",
    "--color-muted": "#9a9fa2",
    "--color-border": "#4c545a",
    "--color-success": "#22c55e",
    "--color-warning": "#eab308",
    "--color-danger": "#ef4444",
    "--color-info": "#3b82f6",
    "--font-family": "Inter, system-ui, sans-serif",
}

_PROPERTY_NAME_RE = re.compile(r"^--[a-zA-Z0-9_-]+$")
_FORBIDDEN_VALUE_CHARS = set(";{}<>\n\r\\")


def validate_property(name: str, value: str) -> None:
    if not isinstance(name, str) or not _PROPERTY_NAME_RE.match(name):
        raise ValueError(f"Invalid style property name: {name!r}")
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Empty value for style property {name}")
    if any(ch in _FORBIDDEN_VALUE_CHARS for ch in value):
        raise ValueError(f"Unsafe value for style property {name}")


class StyleScope:
    """
    Key/value style properties of one rendering root.
    reset() restores the built-in defaults the scope was created with.
    """

    def __init__(self, defaults: Mapping[str, str] | None = None):
        base = DEFAULT_STYLE_VARIABLES if defaults is None else defaults
        for name, value in base.items():
            validate_property(name, value)
        self._defaults: dict[str, str] = dict(base)
        self._properties: dict[str, str] = dict(base)

    def set_property(self, name: str, value: str) -> None:
        validate_property(name, value)
        self._properties[name] = value

    def get_property(self, name: str, default: str | None = None) -> str | None:
        return self._properties.get(name, default)

    def remove_property(self, name: str) -> None:
        self._properties.pop(name, None)

    def reset(self) -> None:
        self._properties = dict(self._defaults)

    @property
    def defaults(self) -> dict[str, str]:
        return dict(self._defaults)

    def snapshot(self) -> dict[str, str]:
        return dict(self._properties)

    def __contains__(self, name: object) -> bool:
        return name in self._properties

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._properties))

    def __len__(self) -> int:
        return len(self._properties)

    def to_css(self, selector: str = ":root") -> str:
        lines = [f"{selector} {{"]
        for name in sorted(self._properties):
            lines.append(f"  {name}: {self._properties[name]};")
        lines.append("}")
        return "\n".join(lines) + "\n"
