import flet as ft

from bugboard.config import (
    COLOR_ARCHIVED,
    COLOR_CARD,
    COLOR_TEXT_MUTED,
    COLOR_TEXT_MAIN,
    BORDER_RADIUS_CARD,
)
from bugboard.domain.models import Issue, IssueStatus
from bugboard.ui.helpers import pill, priority_color, status_color, type_color
from bugboard.utils.time import format_datetime


class IssueListCard(ft.Container):
    def __init__(self, issue: Issue, on_click_callback, show_archived_meta: bool = False):
        super().__init__()
        self.issue = issue
        self.on_click_callback = on_click_callback
        self.show_archived_meta = show_archived_meta

        self.padding = ft.Padding.all(16)
        self.bgcolor = COLOR_CARD
        self.border_radius = BORDER_RADIUS_CARD
        self.border = ft.border.all(1, "transparent")
        self.shadow = ft.BoxShadow(
            blur_radius=2,
            color=ft.Colors.BLACK12,
            offset=ft.Offset(0, 1),
        )
        self.on_click = self._handle_click
        self.ink = True
        self.margin = ft.margin.only(bottom=12)

        self.content = self._build_content()

    def _handle_click(self, e):
        if self.on_click_callback:
            self.on_click_callback(self.issue.id)

    def _build_content(self):
        issue = self.issue
        creator = issue.creator.full_name if issue.creator else "Sconosciuto"

        if issue.archived:
            accent_color = COLOR_ARCHIVED
            icon = ft.Icons.ARCHIVE_OUTLINED
        else:
            accent_color = status_color(issue.status)
            icon = (
                ft.Icons.CHECK_CIRCLE
                if issue.status is IssueStatus.DONE
                else ft.Icons.ADJUST
            )

        meta_row = [
            ft.Text(f"#{issue.id}", size=12, color=COLOR_TEXT_MUTED),
            ft.Text(
                f"Creata da {creator} il {format_datetime(issue.created_at)}",
                size=12,
                color=COLOR_TEXT_MUTED,
            ),
        ]
        if self.show_archived_meta and issue.archived_at:
            archiver = issue.archiver.full_name if issue.archiver else "—"
            meta_row.append(
                ft.Text(
                    f"・  Archiviata il {format_datetime(issue.archived_at)} da {archiver}",
                    size=12,
                    color=COLOR_TEXT_MUTED,
                )
            )

        return ft.Row(
            controls=[
                ft.Icon(icon, size=24, color=accent_color),
                ft.Column(
                    controls=[
                        ft.Text(
                            issue.title,
                            weight=ft.FontWeight.BOLD,
                            size=16,
                            color=COLOR_TEXT_MAIN,
                            max_lines=1,
                            overflow=ft.TextOverflow.ELLIPSIS,
                        ),
                        ft.Row(controls=meta_row, spacing=8, wrap=True),
                        ft.Row(
                            controls=[
                                pill(issue.type.label, type_color(issue.type)),
                                pill(issue.priority.label, priority_color(issue.priority)),
                            ],
                            spacing=4,
                        ),
                    ],
                    spacing=4,
                    expand=True,
                ),
                pill(issue.status.label, accent_color),
            ],
            spacing=16,
            alignment=ft.MainAxisAlignment.START,
            vertical_alignment=ft.CrossAxisAlignment.START,
        )
