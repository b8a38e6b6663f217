"""
auth_views.py - Login / password recovery / profile views
"""
import flet as ft

from bugboard.config import (
    APP_TITLE,
    APP_VERSION,
    BORDER_RADIUS_BTN,
    BORDER_RADIUS_CARD,
    COLOR_BG,
    COLOR_BORDER,
    COLOR_CARD,
    COLOR_DANGER,
    COLOR_PRIMARY,
    COLOR_SUCCESS,
    COLOR_TEXT_MAIN,
    COLOR_TEXT_MUTED,
)
from bugboard.errors import BugBoardError
from bugboard.services import auth_service


def _field(label: str, **kwargs) -> ft.TextField:
    return ft.TextField(
        label=label,
        border_color=COLOR_BORDER,
        focused_border_color=COLOR_PRIMARY,
        border_radius=BORDER_RADIUS_BTN,
        **kwargs,
    )


def _card(controls, width=420) -> ft.Container:
    return ft.Container(
        content=ft.Column(controls=controls, spacing=16, tight=True),
        padding=ft.Padding.all(32),
        bgcolor=COLOR_CARD,
        border_radius=BORDER_RADIUS_CARD,
        shadow=ft.BoxShadow(blur_radius=6, color=ft.Colors.BLACK12, offset=ft.Offset(0, 2)),
        width=width,
    )


def _centered(route: str, card: ft.Control) -> ft.View:
    return ft.View(
        route=route,
        bgcolor=COLOR_BG,
        vertical_alignment=ft.MainAxisAlignment.CENTER,
        horizontal_alignment=ft.CrossAxisAlignment.CENTER,
        controls=[card],
    )


def build_login_view(page: ft.Page, client, session, on_logged_in, on_forgot_password) -> ft.View:
    email_field = _field("Email", prefix_icon=ft.Icons.EMAIL_OUTLINED, autofocus=True)
    password_field = _field(
        "Password",
        prefix_icon=ft.Icons.LOCK_OUTLINE,
        password=True,
        can_reveal_password=True,
    )
    message_text = ft.Text("", color=COLOR_DANGER, size=13)
    login_button = ft.FilledButton(
        "Accedi",
        style=ft.ButtonStyle(bgcolor=COLOR_PRIMARY, color="white"),
        width=356,
    )

    def on_login(_e=None):
        login_button.disabled = True
        message_text.value = ""
        page.update()

        def work():
            try:
                auth_service.login(client, session, email_field.value, password_field.value)
            except BugBoardError as exc:
                message_text.value = exc.message
                login_button.disabled = False
                page.update()
                return
            on_logged_in()

        page.run_thread(work)

    login_button.on_click = on_login
    password_field.on_submit = on_login

    return _centered(
        "/login",
        _card(
            [
                ft.Row(
                    [
                        ft.Icon(ft.Icons.BUG_REPORT, color=COLOR_PRIMARY, size=32),
                        ft.Text(APP_TITLE, size=28, weight=ft.FontWeight.BOLD, color=COLOR_TEXT_MAIN),
                    ],
                    alignment=ft.MainAxisAlignment.CENTER,
                ),
                ft.Text("Accedi al tuo account", color=COLOR_TEXT_MUTED, text_align=ft.TextAlign.CENTER),
                email_field,
                password_field,
                message_text,
                login_button,
                ft.TextButton("Password dimenticata?", on_click=lambda _e: on_forgot_password()),
                ft.Text(f"v{APP_VERSION}", size=11, color=COLOR_TEXT_MUTED, text_align=ft.TextAlign.CENTER),
            ]
        ),
    )


def build_recover_password_view(page: ft.Page, client, on_back) -> ft.View:
    email_field = _field("Email", prefix_icon=ft.Icons.EMAIL_OUTLINED)
    message_text = ft.Text("", size=13)

    def on_submit(_e=None):
        def work():
            try:
                message = auth_service.recover_password(client, email_field.value)
            except BugBoardError as exc:
                message_text.value = exc.message
                message_text.color = COLOR_DANGER
                page.update()
                return
            message_text.value = message
            message_text.color = COLOR_SUCCESS
            page.update()

        page.run_thread(work)

    return _centered(
        "/recupera-password",
        _card(
            [
                ft.Text("Recupera password", size=22, weight=ft.FontWeight.BOLD, color=COLOR_TEXT_MAIN),
                ft.Text(
                    "Inserisci la tua email: riceverai una nuova password.",
                    color=COLOR_TEXT_MUTED,
                ),
                email_field,
                message_text,
                ft.FilledButton(
                    "Invia",
                    style=ft.ButtonStyle(bgcolor=COLOR_PRIMARY, color="white"),
                    on_click=on_submit,
                ),
                ft.TextButton("Torna al login", icon=ft.Icons.ARROW_BACK, on_click=lambda _e: on_back()),
            ]
        ),
    )


def build_profile_body(page: ft.Page, client, session) -> ft.Control:
    user = session.get_user()
    password_field = _field("Nuova password", password=True, can_reveal_password=True)
    confirm_field = _field("Conferma password", password=True, can_reveal_password=True)
    message_text = ft.Text("", size=13)

    def on_change_password(_e=None):
        try:
            auth_service.change_password(client, session, password_field.value or "", confirm_field.value or "")
        except BugBoardError as exc:
            message_text.value = exc.message
            message_text.color = COLOR_DANGER
            page.update()
            return
        password_field.value = confirm_field.value = ""
        message_text.value = "Password aggiornata con successo"
        message_text.color = COLOR_SUCCESS
        page.update()

    def info_row(label, value):
        return ft.Row(
            controls=[
                ft.Text(label, width=120, color=COLOR_TEXT_MUTED),
                ft.Text(value, color=COLOR_TEXT_MAIN, weight=ft.FontWeight.W_500),
            ]
        )

    return ft.Column(
        spacing=16,
        controls=[
            ft.Text("Profilo", size=24, weight=ft.FontWeight.BOLD, color=COLOR_TEXT_MAIN),
            _card(
                [
                    info_row("Nome", user.name if user else ""),
                    info_row("Cognome", user.surname if user else ""),
                    info_row("Email", user.email if user else ""),
                    info_row("Ruolo", user.role.label if user else ""),
                ],
                width=520,
            ),
            _card(
                [
                    ft.Text("Cambia password", size=16, weight=ft.FontWeight.BOLD),
                    password_field,
                    confirm_field,
                    message_text,
                    ft.FilledButton(
                        "Aggiorna password",
                        style=ft.ButtonStyle(bgcolor=COLOR_PRIMARY, color="white"),
                        on_click=on_change_password,
                    ),
                ],
                width=520,
            ),
        ],
    )
