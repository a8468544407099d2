"""Rendering of notification templates into send requests."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from app.domain.entities import NotificationTemplate

_PLACEHOLDER = re.compile(r"\{\{\s*([\w.]+)\s*\}\}")


def render_template(template: str, data: Mapping[str, Any]) -> str:
    """Replace ``{{name}}`` placeholders with values from ``data``.

    Dotted names walk nested mappings (``{{student.name}}``). Placeholders
    without a value are left untouched.
    """

    def _substitute(match: re.Match[str]) -> str:
        value: Any = data
        for part in match.group(1).split("."):
            if not isinstance(value, Mapping) or part not in value:
                return match.group(0)
            value = value[part]
        if value is None:
            return match.group(0)
        return str(value)

    return _PLACEHOLDER.sub(_substitute, template)


def extract_variables(*templates: str) -> list[str]:
    """Return the placeholder names used by ``templates`` in order of appearance."""

    names: list[str] = []
    for template in templates:
        for name in _PLACEHOLDER.findall(template):
            if name not in names:
                names.append(name)
    return names


def build_template_request(
    template: NotificationTemplate,
    *,
    user_id: str,
    data: Mapping[str, Any],
) -> dict[str, Any]:
    """Return the raw ``send`` payload produced by ``template`` for ``user_id``."""

    return {
        "userId": user_id,
        "title": render_template(template.title_template, data),
        "message": render_template(template.message_template, data),
        "type": template.type,
        "priority": template.priority,
        "category": template.category,
        "channels": list(template.channels),
        "templateId": template.id,
        "templateData": dict(data),
    }


__all__ = ["build_template_request", "extract_variables", "render_template"]
