"""
sidebar.py - Navigation sidebar
"""
import flet as ft

from bugboard.config import (
    APP_TITLE,
    COLOR_PRIMARY,
    COLOR_SIDEBAR_BG,
    COLOR_SIDEBAR_FG,
    SIDEBAR_WIDTH,
)
from bugboard.domain.capabilities import can_manage_users
from bugboard.session import Session


def _nav_items(session: Session) -> list[tuple[str, str, str]]:
    items = [
        ("Dashboard", ft.Icons.DASHBOARD_OUTLINED, "/"),
        ("Issue", ft.Icons.BUG_REPORT_OUTLINED, "/issues"),
        ("Archiviate", ft.Icons.ARCHIVE_OUTLINED, "/issues/archived"),
    ]
    if can_manage_users(session.get_user()):
        items.append(("Utenti", ft.Icons.PEOPLE_OUTLINE, "/users"))
    items.append(("Profilo", ft.Icons.PERSON_OUTLINE, "/profile"))
    return items


def build_sidebar(session: Session, current_route: str, on_navigate, on_toggle, on_logout) -> ft.Container:
    expanded = session.sidebar_open

    def nav_button(label, icon, route):
        selected = current_route == route
        return ft.Container(
            content=ft.Row(
                controls=[
                    ft.Icon(icon, color=COLOR_SIDEBAR_FG, size=20),
                    *([ft.Text(label, color=COLOR_SIDEBAR_FG)] if expanded else []),
                ],
                spacing=12,
            ),
            tooltip=None if expanded else label,
            padding=ft.Padding.symmetric(vertical=10, horizontal=14),
            bgcolor=COLOR_PRIMARY if selected else None,
            border_radius=6,
            ink=True,
            on_click=lambda _e: on_navigate(route),
        )

    user = session.get_user()
    header = ft.Row(
        controls=[
            *(
                [ft.Text(APP_TITLE, color=COLOR_SIDEBAR_FG, size=18, weight=ft.FontWeight.BOLD, expand=True)]
                if expanded
                else []
            ),
            ft.IconButton(
                icon=ft.Icons.MENU_OPEN if expanded else ft.Icons.MENU,
                icon_color=COLOR_SIDEBAR_FG,
                tooltip="Comprimi menu" if expanded else "Espandi menu",
                on_click=lambda _e: on_toggle(),
            ),
        ],
    )

    footer = ft.Column(
        controls=[
            *(
                [
                    ft.Text(user.full_name, color=COLOR_SIDEBAR_FG, size=13, weight=ft.FontWeight.W_500),
                    ft.Text(user.role.label, color=ft.Colors.WHITE54, size=12),
                ]
                if expanded and user
                else []
            ),
            nav_button_logout(expanded, on_logout),
        ],
        spacing=4,
    )

    return ft.Container(
        width=SIDEBAR_WIDTH if expanded else 64,
        bgcolor=COLOR_SIDEBAR_BG,
        padding=ft.Padding.all(8),
        content=ft.Column(
            controls=[
                header,
                ft.Divider(color=ft.Colors.WHITE24),
                *[nav_button(*item) for item in _nav_items(session)],
                ft.Container(expand=True),
                footer,
            ],
            spacing=4,
        ),
    )


def nav_button_logout(expanded: bool, on_logout) -> ft.Container:
    return ft.Container(
        content=ft.Row(
            controls=[
                ft.Icon(ft.Icons.LOGOUT, color=COLOR_SIDEBAR_FG, size=20),
                *([ft.Text("Esci", color=COLOR_SIDEBAR_FG)] if expanded else []),
            ],
            spacing=12,
        ),
        tooltip=None if expanded else "Esci",
        padding=ft.Padding.symmetric(vertical=10, horizontal=14),
        border_radius=6,
        ink=True,
        on_click=lambda _e: on_logout(),
    )
