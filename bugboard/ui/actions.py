"""
actions.py - UI-side actions and dialogs
Single responsibility: handle modal flows that create or mutate issues and users.
"""
import logging

import flet as ft

from bugboard.config import (
    BORDER_RADIUS_BTN,
    BORDER_RADIUS_CARD,
    COLOR_BORDER,
    COLOR_DANGER,
    COLOR_PRIMARY,
    COLOR_TEXT_MUTED,
    COLOR_WARNING,
    MAX_DESCRIPTION_LENGTH,
    MAX_TITLE_LENGTH,
)
from bugboard.domain.models import (
    Issue,
    IssueDraft,
    IssuePriority,
    IssueStatus,
    IssueType,
    Role,
    User,
)
from bugboard.errors import BugBoardError, ValidationError, user_message
from bugboard.services import attachment_service, issue_service, user_service
from bugboard.ui.helpers import enum_options, parse_paths, show_snack
from bugboard.utils.files import UploadFile, clipboard_image, format_file_size

logger = logging.getLogger(__name__)


def _text_field(label: str, **kwargs) -> ft.TextField:
    return ft.TextField(
        label=label,
        border_color=COLOR_BORDER,
        focused_border_color=COLOR_PRIMARY,
        border_radius=BORDER_RADIUS_BTN,
        **kwargs,
    )


def _dropdown(label: str, options, value) -> ft.Dropdown:
    return ft.Dropdown(
        label=label,
        options=options,
        value=value,
        border_color=COLOR_BORDER,
        focused_border_color=COLOR_PRIMARY,
        border_radius=BORDER_RADIUS_BTN,
    )


def show_confirm_dialog(page: ft.Page, title: str, message: str, confirm_label: str, on_confirm, on_cancel=None, danger: bool = True):
    """Modal yes/no dialog. Callbacks run after the dialog closes."""

    def close(_e=None):
        dialog.open = False
        page.update()

    def confirm(_e=None):
        close()
        on_confirm()

    def cancel(_e=None):
        close()
        if on_cancel:
            on_cancel()

    dialog = ft.AlertDialog(
        modal=True,
        title=ft.Text(title, weight=ft.FontWeight.BOLD),
        content=ft.Text(message, color=COLOR_TEXT_MUTED),
        actions=[
            ft.TextButton("Annulla", on_click=cancel),
            ft.FilledButton(
                confirm_label,
                style=ft.ButtonStyle(bgcolor=COLOR_DANGER if danger else COLOR_PRIMARY, color="white"),
                on_click=confirm,
            ),
        ],
        actions_alignment=ft.MainAxisAlignment.END,
    )
    page.overlay.append(dialog)
    dialog.open = True
    page.update()


def show_error_dialog(page: ft.Page, title: str, exc: BaseException):
    page.overlay.append(
        ft.AlertDialog(
            title=ft.Text(title),
            content=ft.Text(user_message(exc)),
            open=True,
        )
    )
    page.update()


# ---------------------------------------------------------------------------
# Issue
# ---------------------------------------------------------------------------


def show_new_issue_dialog(page: ft.Page, client, session, on_created):
    """Open a dialog to create a new issue (with optional attachments)."""
    selected_files: list[UploadFile] = []

    title_field = _text_field("Titolo *", max_length=MAX_TITLE_LENGTH)
    description_field = _text_field(
        "Descrizione *",
        multiline=True,
        min_lines=5,
        max_lines=12,
        max_length=MAX_DESCRIPTION_LENGTH,
    )
    type_field = _dropdown("Tipo *", enum_options(IssueType), IssueType.BUG.value)
    priority_field = _dropdown(
        "Priorità", enum_options(IssuePriority), IssuePriority.NONE.value
    )
    paths_field = _text_field(
        "Allegati (percorsi, uno per riga)",
        multiline=True,
        min_lines=1,
        max_lines=4,
        hint_text="JPEG, PNG, GIF, WebP, PDF, DOC, DOCX - max 5 MB",
    )
    files_list = ft.Column(spacing=2)
    error_text = ft.Text("", color=COLOR_DANGER, size=12)
    save_button = ft.FilledButton(
        "Crea",
        style=ft.ButtonStyle(bgcolor=COLOR_PRIMARY, color="white"),
    )

    def render_files():
        files_list.controls = [
            ft.Text(f"📎 {f.name} ({format_file_size(f.size)})", size=12, color=COLOR_TEXT_MUTED)
            for f in selected_files
        ]

    def on_add_files(_e=None):
        for path in parse_paths(paths_field.value):
            try:
                selected_files.append(UploadFile.from_path(path))
            except OSError as exc:
                logger.warning(f"Cannot read {path}: {exc}")
                show_snack(page, f"Impossibile leggere {path}", COLOR_DANGER)
        paths_field.value = ""
        render_files()
        page.update()

    def on_paste_image(_e=None):
        image = clipboard_image()
        if image is None:
            show_snack(page, "Nessuna immagine negli appunti", COLOR_DANGER)
            return
        selected_files.append(image)
        render_files()
        page.update()

    def on_save(_e=None):
        draft = IssueDraft(
            title=title_field.value or "",
            description=description_field.value or "",
            type=IssueType.parse_optional(type_field.value),
            priority=IssuePriority.parse_optional(priority_field.value, IssuePriority.NONE),
        )
        try:
            issue_service.validate_draft(draft)
        except ValidationError as exc:
            error_text.value = f"⚠  {exc.message}"
            page.update()
            return

        save_button.disabled = True
        error_text.value = ""
        page.update()

        def work():
            try:
                issue, batch = attachment_service.create_issue_with_attachments(
                    client, session, draft, list(selected_files)
                )
            except BugBoardError as exc:
                error_text.value = f"⚠  {exc.message}"
                save_button.disabled = False
                page.update()
                return
            dialog.open = False
            page.update()
            if batch.failed:
                show_snack(
                    page,
                    f"Issue creata, ma {len(batch.failed)} allegato/i non caricato/i",
                    COLOR_WARNING,
                )
            on_created(issue)

        page.run_thread(work)

    def on_cancel(_e=None):
        dialog.open = False
        page.update()

    save_button.on_click = on_save

    dialog = ft.AlertDialog(
        modal=True,
        title=ft.Text("Nuova issue", weight=ft.FontWeight.BOLD),
        content=ft.Container(
            content=ft.Column(
                controls=[
                    title_field,
                    description_field,
                    ft.Row([type_field, priority_field], spacing=12),
                    ft.Row(
                        controls=[
                            ft.Container(paths_field, expand=True),
                            ft.IconButton(
                                icon=ft.Icons.ATTACH_FILE,
                                icon_color=COLOR_PRIMARY,
                                tooltip="Aggiungi file",
                                on_click=on_add_files,
                            ),
                            ft.IconButton(
                                icon=ft.Icons.IMAGE,
                                icon_color=COLOR_PRIMARY,
                                tooltip="Incolla immagine dagli appunti",
                                on_click=on_paste_image,
                            ),
                        ],
                        vertical_alignment=ft.CrossAxisAlignment.START,
                    ),
                    files_list,
                    error_text,
                ],
                spacing=16,
                tight=True,
                scroll=ft.ScrollMode.AUTO,
            ),
            width=600,
        ),
        actions=[
            ft.TextButton("Annulla", on_click=on_cancel),
            save_button,
        ],
        actions_alignment=ft.MainAxisAlignment.END,
        shape=ft.RoundedRectangleBorder(radius=BORDER_RADIUS_CARD),
    )
    page.overlay.append(dialog)
    dialog.open = True
    page.update()


def show_edit_issue_dialog(page: ft.Page, client, session, issue: Issue, on_saved):
    """Edit title, description, priority and status. The type is fixed after creation."""
    title_field = _text_field("Titolo *", value=issue.title, max_length=MAX_TITLE_LENGTH)
    description_field = _text_field(
        "Descrizione *",
        value=issue.description,
        multiline=True,
        min_lines=5,
        max_lines=12,
        max_length=MAX_DESCRIPTION_LENGTH,
    )
    priority_field = _dropdown("Priorità", enum_options(IssuePriority), issue.priority.value)
    status_field = _dropdown("Stato", enum_options(IssueStatus), issue.status.value)
    error_text = ft.Text("", color=COLOR_DANGER, size=12)

    def on_save(_e=None):
        draft = IssueDraft(
            title=title_field.value or "",
            description=description_field.value or "",
            type=issue.type,
            priority=IssuePriority.parse(priority_field.value),
            status=IssueStatus.parse(status_field.value),
        )
        try:
            issue_service.validate_draft(draft)
            payload = draft.to_api()
            payload.pop("tipo")
            updated = issue_service.update_issue(client, session, issue.id, payload)
        except BugBoardError as exc:
            error_text.value = f"⚠  {exc.message}"
            page.update()
            return
        dialog.open = False
        page.update()
        on_saved(updated)

    def on_cancel(_e=None):
        dialog.open = False
        page.update()

    dialog = ft.AlertDialog(
        modal=True,
        title=ft.Text(f"Modifica issue #{issue.id}", weight=ft.FontWeight.BOLD),
        content=ft.Container(
            content=ft.Column(
                controls=[
                    title_field,
                    description_field,
                    ft.Row([priority_field, status_field], spacing=12),
                    error_text,
                ],
                spacing=16,
                tight=True,
            ),
            width=600,
        ),
        actions=[
            ft.TextButton("Annulla", on_click=on_cancel),
            ft.FilledButton(
                "Salva",
                style=ft.ButtonStyle(bgcolor=COLOR_PRIMARY, color="white"),
                on_click=on_save,
            ),
        ],
        actions_alignment=ft.MainAxisAlignment.END,
        shape=ft.RoundedRectangleBorder(radius=BORDER_RADIUS_CARD),
    )
    page.overlay.append(dialog)
    dialog.open = True
    page.update()


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def show_new_user_dialog(page: ft.Page, client, session, on_created):
    name_field = _text_field("Nome *")
    surname_field = _text_field("Cognome *")
    email_preview = _text_field("Email (generata)", read_only=True)
    password_field = _text_field("Password *", password=True, can_reveal_password=True)
    confirm_field = _text_field("Conferma password *", password=True, can_reveal_password=True)
    role_field = _dropdown("Ruolo", enum_options(Role), Role.USER.value)
    error_text = ft.Text("", color=COLOR_DANGER, size=12)

    def on_name_change(_e=None):
        email_preview.value = user_service.generate_email(
            name_field.value or "", surname_field.value or ""
        )
        page.update()

    name_field.on_change = on_name_change
    surname_field.on_change = on_name_change

    def on_save(_e=None):
        draft = user_service.UserDraft(
            name=name_field.value or "",
            surname=surname_field.value or "",
            password=password_field.value or "",
            confirm_password=confirm_field.value or "",
            role=Role.parse(role_field.value),
        )
        try:
            user = user_service.create_user(client, session, draft)
        except BugBoardError as exc:
            error_text.value = f"⚠  {exc.message}"
            page.update()
            return
        dialog.open = False
        page.update()
        show_snack(page, f"Utenza {user.email} creata", COLOR_PRIMARY)
        on_created()

    def on_cancel(_e=None):
        dialog.open = False
        page.update()

    dialog = ft.AlertDialog(
        modal=True,
        title=ft.Text("Nuova utenza", weight=ft.FontWeight.BOLD),
        content=ft.Container(
            content=ft.Column(
                controls=[
                    ft.Row([name_field, surname_field], spacing=12),
                    email_preview,
                    password_field,
                    confirm_field,
                    role_field,
                    error_text,
                ],
                spacing=16,
                tight=True,
            ),
            width=520,
        ),
        actions=[
            ft.TextButton("Annulla", on_click=on_cancel),
            ft.FilledButton(
                "Crea",
                style=ft.ButtonStyle(bgcolor=COLOR_PRIMARY, color="white"),
                on_click=on_save,
            ),
        ],
        actions_alignment=ft.MainAxisAlignment.END,
        shape=ft.RoundedRectangleBorder(radius=BORDER_RADIUS_CARD),
    )
    page.overlay.append(dialog)
    dialog.open = True
    page.update()


def show_role_dialog(page: ft.Page, client, session, user: User, on_saved):
    role_field = _dropdown("Ruolo", enum_options(Role), user.role.value)
    error_text = ft.Text("", color=COLOR_DANGER, size=12)

    def on_save(_e=None):
        try:
            user_service.change_role(client, session, user, Role.parse(role_field.value))
        except BugBoardError as exc:
            error_text.value = f"⚠  {exc.message}"
            page.update()
            return
        dialog.open = False
        page.update()
        on_saved()

    def on_cancel(_e=None):
        dialog.open = False
        page.update()

    dialog = ft.AlertDialog(
        modal=True,
        title=ft.Text(f"Ruolo di {user.full_name}", weight=ft.FontWeight.BOLD),
        content=ft.Column([role_field, error_text], tight=True, spacing=12),
        actions=[
            ft.TextButton("Annulla", on_click=on_cancel),
            ft.FilledButton(
                "Salva",
                style=ft.ButtonStyle(bgcolor=COLOR_PRIMARY, color="white"),
                on_click=on_save,
            ),
        ],
        actions_alignment=ft.MainAxisAlignment.END,
    )
    page.overlay.append(dialog)
    dialog.open = True
    page.update()
