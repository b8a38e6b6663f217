"""
helpers.py - UI helper functions
Single responsibility: small formatting helpers used across UI.
"""
import flet as ft

from bugboard.config import (
    COLOR_TEXT_MUTED,
    PRIORITY_COLORS,
    STATUS_COLORS,
    TYPE_COLORS,
)
from bugboard.domain.models import IssuePriority, IssueStatus, IssueType


def status_color(status: IssueStatus) -> str:
    return STATUS_COLORS.get(status.value, COLOR_TEXT_MUTED)


def priority_color(priority: IssuePriority) -> str:
    return PRIORITY_COLORS.get(priority.value, COLOR_TEXT_MUTED)


def type_color(issue_type: IssueType) -> str:
    return TYPE_COLORS.get(issue_type.value, COLOR_TEXT_MUTED)


def pill(text: str, color: str, size: int = 11) -> ft.Container:
    return ft.Container(
        content=ft.Text(text, size=size, color="white", weight=ft.FontWeight.BOLD),
        bgcolor=color,
        border_radius=12,
        padding=ft.Padding.symmetric(horizontal=10, vertical=2),
    )


def parse_paths(text: str | None) -> list[str]:
    """Newline/semicolon-separated file paths, quotes stripped, duplicates removed."""
    if not text:
        return []
    paths = []
    seen = set()
    for part in text.replace(";", "\n").splitlines():
        path = part.strip().strip('"').strip("'")
        if not path or path in seen:
            continue
        seen.add(path)
        paths.append(path)
    return paths


def enum_options(enum_cls, empty_label: str | None = None) -> list[ft.dropdown.Option]:
    options = [ft.dropdown.Option(key="", text=empty_label)] if empty_label else []
    return options + [
        ft.dropdown.Option(key=member.value, text=member.label) for member in enum_cls
    ]


def show_snack(page: ft.Page, message: str, color: str) -> None:
    snack = ft.SnackBar(ft.Text(message), bgcolor=color)
    page.overlay.append(snack)
    snack.open = True
    page.update()
