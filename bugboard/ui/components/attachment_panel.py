"""
attachment_panel.py - Attachment list / upload widget for one issue
"""
import logging

import flet as ft

from bugboard.config import (
    BORDER_RADIUS_BTN,
    BORDER_RADIUS_CARD,
    COLOR_BORDER,
    COLOR_CARD,
    COLOR_DANGER,
    COLOR_PRIMARY,
    COLOR_SUCCESS,
    COLOR_TEXT_MAIN,
    COLOR_TEXT_MUTED,
)
from bugboard.errors import BugBoardError
from bugboard.state.attachment_state import AttachmentPanelState, UploadPhase
from bugboard.ui.actions import show_confirm_dialog
from bugboard.ui.helpers import parse_paths, show_snack
from bugboard.utils.files import UploadFile, clipboard_image, format_file_size, save_download
from bugboard.utils.time import format_datetime

logger = logging.getLogger(__name__)

_PHASE_ICONS = {
    UploadPhase.PENDING: (ft.Icons.SCHEDULE, COLOR_TEXT_MUTED),
    UploadPhase.UPLOADING: (ft.Icons.UPLOAD, COLOR_PRIMARY),
    UploadPhase.DONE: (ft.Icons.CHECK_CIRCLE, COLOR_SUCCESS),
    UploadPhase.FAILED: (ft.Icons.ERROR_OUTLINE, COLOR_DANGER),
}


class AttachmentPanel(ft.Container):
    def __init__(self, page: ft.Page, state: AttachmentPanelState):
        super().__init__()
        self.page_ref = page
        self.state = state

        self.padding = ft.Padding.all(16)
        self.bgcolor = COLOR_CARD
        self.border_radius = BORDER_RADIUS_CARD
        self.border = ft.border.all(1, COLOR_BORDER)
        self.width = 980

        self.list_column = ft.Column(spacing=6)
        self.progress_column = ft.Column(spacing=2)
        self.error_text = ft.Text("", color=COLOR_DANGER, size=12)
        self.summary_text = ft.Text("", size=12, color=COLOR_TEXT_MUTED)
        self.paths_field = ft.TextField(
            hint_text="Percorso del file (uno per riga)",
            multiline=True,
            min_lines=1,
            max_lines=3,
            border_radius=BORDER_RADIUS_BTN,
            border_color=COLOR_BORDER,
            text_size=13,
            expand=True,
        )
        self.content = self._build_content()
        self._render()

    # -- rendering -----------------------------------------------------------

    def _build_content(self):
        header = ft.Row(
            controls=[
                ft.Icon(ft.Icons.ATTACH_FILE, size=18, color=COLOR_TEXT_MUTED),
                ft.Text("Allegati", size=14, weight=ft.FontWeight.W_600, color=COLOR_TEXT_MAIN),
                self.summary_text,
            ],
            spacing=6,
        )
        controls = [header, self.list_column]
        if self.state.read_only:
            controls.append(
                ft.Text(
                    "Issue archiviata: gli allegati sono in sola lettura",
                    size=12,
                    color=COLOR_TEXT_MUTED,
                    italic=True,
                )
            )
        else:
            controls.extend(
                [
                    ft.Row(
                        controls=[
                            self.paths_field,
                            ft.IconButton(
                                icon=ft.Icons.UPLOAD_FILE,
                                icon_color=COLOR_PRIMARY,
                                tooltip="Carica",
                                on_click=self._on_upload_paths,
                            ),
                            ft.IconButton(
                                icon=ft.Icons.IMAGE,
                                icon_color=COLOR_PRIMARY,
                                tooltip="Incolla immagine dagli appunti",
                                on_click=self._on_paste_image,
                            ),
                        ],
                        vertical_alignment=ft.CrossAxisAlignment.START,
                    ),
                    ft.Text("Solo immagini (JPEG, PNG, GIF, WebP), max 5 MB", size=11, color=COLOR_TEXT_MUTED),
                    self.progress_column,
                ]
            )
        controls.append(self.error_text)
        return ft.Column(controls=controls, spacing=10)

    def _render(self):
        if not self.state.items:
            self.list_column.controls = [
                ft.Text("Nessun allegato", size=13, color=COLOR_TEXT_MUTED)
            ]
        else:
            self.list_column.controls = [self._build_item(a) for a in self.state.items]

        self.progress_column.controls = [
            ft.Row(
                controls=[
                    ft.Icon(_PHASE_ICONS[p.phase][0], size=16, color=_PHASE_ICONS[p.phase][1]),
                    ft.Text(p.file_name, size=12),
                    ft.Text(p.message, size=12, color=COLOR_DANGER),
                ],
                spacing=6,
            )
            for p in self.state.progress.values()
        ]
        self.error_text.value = self.state.error or ""
        self.summary_text.value = (
            f"({self.state.count} ・ {format_file_size(self.state.total_bytes)})"
            if self.state.count
            else ""
        )

    def _build_item(self, attachment):
        actions = [
            ft.IconButton(
                icon=ft.Icons.DOWNLOAD,
                tooltip="Scarica",
                on_click=lambda _e, a=attachment: self._on_download(a),
            )
        ]
        if not self.state.read_only:
            actions.append(
                ft.IconButton(
                    icon=ft.Icons.DELETE_OUTLINE,
                    icon_color=COLOR_DANGER,
                    tooltip="Elimina allegato",
                    on_click=lambda _e, a=attachment: self._on_delete(a),
                )
            )
        return ft.Row(
            controls=[
                ft.Icon(
                    ft.Icons.IMAGE_OUTLINED if attachment.is_image else ft.Icons.DESCRIPTION_OUTLINED,
                    size=18,
                    color=COLOR_TEXT_MUTED,
                ),
                ft.Column(
                    controls=[
                        ft.Text(attachment.file_name, size=13, color=COLOR_TEXT_MAIN),
                        ft.Text(
                            f"{format_file_size(attachment.size)} ・ {format_datetime(attachment.uploaded_at)}",
                            size=11,
                            color=COLOR_TEXT_MUTED,
                        ),
                    ],
                    spacing=0,
                    expand=True,
                ),
                *actions,
            ],
            spacing=8,
        )

    def set_read_only(self, read_only: bool):
        if read_only == self.state.read_only:
            return
        self.state.archived = read_only
        self.content = self._build_content()
        self._render()

    def refresh(self):
        self._render()
        if self.page_ref:
            self.page_ref.update()

    def load_async(self):
        def work():
            self.state.load()
            self.refresh()

        self.page_ref.run_thread(work)

    # -- events --------------------------------------------------------------

    def _upload(self, files: list[UploadFile]):
        if not files:
            return

        self.state.clear_finished()

        def work():
            self.state.error = None
            try:
                result = self.state.upload(files, on_progress=self.refresh)
            except BugBoardError as exc:
                self.state.error = exc.message
                self.refresh()
                return
            self.refresh()
            if result.uploaded:
                show_snack(self.page_ref, f"{len(result.uploaded)} file caricato/i", COLOR_SUCCESS)

        self.page_ref.run_thread(work)

    def _on_upload_paths(self, _e=None):
        files = []
        for path in parse_paths(self.paths_field.value):
            try:
                files.append(UploadFile.from_path(path))
            except OSError as exc:
                logger.warning(f"Cannot read {path}: {exc}")
                show_snack(self.page_ref, f"Impossibile leggere {path}", COLOR_DANGER)
        self.paths_field.value = ""
        self._upload(files)

    def _on_paste_image(self, _e=None):
        image = clipboard_image()
        if image is None:
            show_snack(self.page_ref, "Nessuna immagine negli appunti", COLOR_DANGER)
            return
        self._upload([image])

    def _on_download(self, attachment):
        def work():
            try:
                content = self.state.download(attachment)
                path = save_download(attachment.file_name, content)
            except BugBoardError as exc:
                show_snack(self.page_ref, exc.message, COLOR_DANGER)
                return
            except OSError as exc:
                logger.warning(f"Cannot save {attachment.file_name}: {exc}")
                show_snack(self.page_ref, "Impossibile salvare il file", COLOR_DANGER)
                return
            show_snack(self.page_ref, f"Salvato in {path}", COLOR_SUCCESS)

        self.page_ref.run_thread(work)

    def _on_delete(self, attachment):
        try:
            self.state.request_delete(attachment)
        except BugBoardError as exc:
            show_snack(self.page_ref, exc.message, COLOR_DANGER)
            return

        def confirm():
            if self.state.confirm_delete():
                show_snack(self.page_ref, "Allegato eliminato", COLOR_SUCCESS)
            self.refresh()

        show_confirm_dialog(
            self.page_ref,
            "Elimina allegato",
            f"Vuoi eliminare {attachment.file_name}?",
            "Elimina",
            on_confirm=confirm,
            on_cancel=self.state.cancel_delete,
        )
