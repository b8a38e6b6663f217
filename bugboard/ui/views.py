"""
views.py - UI view builders (dashboard/lists/detail/users)
Single responsibility: build flet Views using provided callbacks/state.
"""
import logging

import flet as ft

from bugboard.config import (
    APP_TITLE,
    BORDER_RADIUS_BTN,
    BORDER_RADIUS_CARD,
    COLOR_ARCHIVED,
    COLOR_BG,
    COLOR_BORDER,
    COLOR_CARD,
    COLOR_DANGER,
    COLOR_PRIMARY,
    COLOR_SUCCESS,
    COLOR_TEXT_MAIN,
    COLOR_TEXT_MUTED,
    RECENT_ISSUES_LIMIT,
)
from bugboard.domain.capabilities import can_edit_attachments, can_manage_issues
from bugboard.domain.filters import SortKey
from bugboard.domain.models import IssuePriority, IssueStatus, IssueType, Role
from bugboard.errors import BugBoardError, NotFound
from bugboard.services import issue_service, user_service
from bugboard.state import detail_state
from bugboard.state.attachment_state import AttachmentPanelState
from bugboard.state.list_state import IssueListController, IssueListState, ListPhase
from bugboard.ui import actions
from bugboard.ui.components.attachment_panel import AttachmentPanel
from bugboard.ui.components.issue_card import IssueListCard
from bugboard.ui.helpers import (
    enum_options,
    pill,
    priority_color,
    show_snack,
    status_color,
    type_color,
)
from bugboard.utils.time import format_datetime

logger = logging.getLogger(__name__)


def build_shell(route: str, sidebar: ft.Control, body: ft.Control) -> ft.View:
    """Sidebar on the left, scrollable page body on the right."""
    return ft.View(
        route=route,
        bgcolor=COLOR_BG,
        padding=0,
        controls=[
            ft.Row(
                controls=[
                    sidebar,
                    ft.Container(
                        content=body,
                        padding=ft.Padding.symmetric(horizontal=24, vertical=16),
                        expand=True,
                    ),
                ],
                expand=True,
                spacing=0,
                vertical_alignment=ft.CrossAxisAlignment.STRETCH,
            )
        ],
    )


def _page_title(text: str, *trailing) -> ft.Row:
    return ft.Row(
        controls=[
            ft.Text(text, size=24, weight=ft.FontWeight.BOLD, color=COLOR_TEXT_MAIN, expand=True),
            *trailing,
        ],
    )


def _empty_state(message: str, icon=ft.Icons.INBOX) -> ft.Container:
    return ft.Container(
        content=ft.Column(
            [
                ft.Icon(icon, size=64, color="#d0d7de"),
                ft.Text(message, color=COLOR_TEXT_MUTED, size=16),
            ],
            horizontal_alignment=ft.CrossAxisAlignment.CENTER,
        ),
        alignment=ft.Alignment.CENTER,
        padding=60,
        expand=True,
    )


def _filter_dropdown(label: str, options, value, on_select, width=170) -> ft.Dropdown:
    return ft.Dropdown(
        label=label,
        options=options,
        value=value,
        width=width,
        border_radius=BORDER_RADIUS_BTN,
        border_color=COLOR_BORDER,
        bgcolor=COLOR_CARD,
        text_size=14,
        on_select=on_select,
    )


# ---------------------------------------------------------------------------
# Issue lists (active / archived)
# ---------------------------------------------------------------------------


def build_issue_list_body(
    page: ft.Page,
    client,
    session,
    list_state: IssueListState,
    on_select_issue,
    on_new_issue=None,
) -> ft.Control:
    """
    Shared body for both list strategies.

    Filter widgets only call ``controller.change_filter``; whether that means
    a new request (active list) or an in-memory recompute (archived list) is
    decided by the state object.
    """
    archived = list_state.filter.archived
    list_column_ref = ft.Ref[ft.Column]()
    summary_text = ft.Text("", size=13, color=COLOR_TEXT_MUTED)
    error_text = ft.Text("", size=13, color=COLOR_DANGER)
    progress = ft.ProgressBar(visible=False, height=3)

    def render():
        """Update only the list controls without rebuilding the whole view."""
        col = list_column_ref.current
        if col is None:
            return
        issues = list_state.visible
        progress.visible = list_state.phase is ListPhase.LOADING
        error_text.value = list_state.error if list_state.phase is ListPhase.ERROR else ""
        summary_text.value = list_state.summary
        if not issues and list_state.phase is not ListPhase.LOADING:
            message = (
                "Nessuna issue corrisponde ai filtri"
                if list_state.has_active_filters
                else ("Nessuna issue archiviata" if archived else "Nessuna issue presente")
            )
            col.controls = [_empty_state(message)]
        else:
            col.controls = [
                IssueListCard(issue, on_select_issue, show_archived_meta=archived)
                for issue in issues
            ]
        page.update()

    controller = IssueListController(list_state, client, on_change=render, run=page.run_thread)

    def enum_value(enum_cls, raw):
        return enum_cls.parse(raw) if raw else None

    # active: every keystroke is a new request; archived: in-memory recompute
    search_field = ft.TextField(
        prefix_icon=ft.Icons.SEARCH,
        hint_text="Cerca per titolo...",
        value=list_state.filter.search,
        on_change=lambda e: controller.change_filter(search=e.control.value or ""),
        border_radius=BORDER_RADIUS_BTN,
        border_color="transparent",
        bgcolor=COLOR_CARD,
        content_padding=ft.Padding.symmetric(horizontal=12, vertical=12),
        text_size=14,
        expand=True,
    )
    status_dd = _filter_dropdown(
        "Stato",
        enum_options(IssueStatus, "Tutti"),
        list_state.filter.status.value if list_state.filter.status else "",
        lambda e: controller.change_filter(status=enum_value(IssueStatus, e.control.value)),
    )
    type_dd = _filter_dropdown(
        "Tipo",
        enum_options(IssueType, "Tutti"),
        list_state.filter.type.value if list_state.filter.type else "",
        lambda e: controller.change_filter(type=enum_value(IssueType, e.control.value)),
    )
    priority_dd = _filter_dropdown(
        "Priorità",
        enum_options(IssuePriority, "Tutte"),
        list_state.filter.priority.value if list_state.filter.priority else "",
        lambda e: controller.change_filter(priority=enum_value(IssuePriority, e.control.value)),
    )
    sort_dd = _filter_dropdown(
        "Ordina per",
        [ft.dropdown.Option(key=k.value, text=k.label) for k in SortKey],
        list_state.filter.sort.value,
        lambda e: controller.change_filter(sort=SortKey(e.control.value)),
        width=220,
    )

    def on_reset(_e=None):
        controller.reset()
        search_field.value = ""
        status_dd.value = type_dd.value = priority_dd.value = ""
        sort_dd.value = SortKey.NEWEST.value
        page.update()

    header_actions = [
        ft.IconButton(
            icon=ft.Icons.REFRESH,
            tooltip="Aggiorna",
            on_click=lambda _e: controller.refresh(),
        )
    ]
    if on_new_issue is not None:
        header_actions.append(
            ft.FilledButton(
                "Nuova issue",
                icon=ft.Icons.ADD,
                style=ft.ButtonStyle(bgcolor=COLOR_PRIMARY, color="white"),
                on_click=lambda _e: on_new_issue(),
            )
        )

    filters = ft.Container(
        content=ft.Column(
            controls=[
                ft.Row([search_field]),
                ft.Row(
                    controls=[
                        status_dd,
                        type_dd,
                        priority_dd,
                        sort_dd,
                        ft.TextButton("Azzera filtri", icon=ft.Icons.FILTER_ALT_OFF, on_click=on_reset),
                    ],
                    wrap=True,
                    spacing=12,
                ),
            ],
            spacing=12,
        ),
        padding=ft.Padding.all(12),
        bgcolor=COLOR_CARD,
        border_radius=BORDER_RADIUS_CARD,
    )

    body = ft.Column(
        expand=True,
        spacing=12,
        controls=[
            _page_title("Issue archiviate" if archived else "Issue", *header_actions),
            filters,
            ft.Row([summary_text, error_text], spacing=16),
            progress,
            ft.Column(ref=list_column_ref, expand=True, scroll=ft.ScrollMode.AUTO, spacing=0),
        ],
    )
    # first load after the controls exist
    page.run_thread(controller.refresh)
    return body


# ---------------------------------------------------------------------------
# Detail
# ---------------------------------------------------------------------------


def build_detail_body(
    page: ft.Page,
    client,
    session,
    issue_id: int,
    nav_state: dict | None,
    on_back,
) -> ft.Control:
    """``on_back(route)`` is called with the list route the user came from."""
    controller = detail_state.IssueDetailController(client, session, issue_id)
    back_route = detail_state.return_route(nav_state)
    try:
        state = controller.load()
    except NotFound as exc:
        return ft.Column(
            controls=[
                ft.IconButton(icon=ft.Icons.ARROW_BACK, on_click=lambda e: on_back(back_route)),
                _empty_state(exc.message, ft.Icons.SEARCH_OFF),
            ]
        )

    container = ft.Column(expand=True, spacing=4)

    def rebuild():
        container.controls = _detail_controls()
        page.update()

    def apply(new_state):
        if new_state.deleted:
            show_snack(page, "Issue eliminata", COLOR_SUCCESS)
            on_back(back_route)
            return
        attachment_panel.set_read_only(
            not can_edit_attachments(new_state.user, new_state.issue.archived)
        )
        rebuild()
        if new_state.phase is detail_state.DetailPhase.CONFIRMING:
            pending = new_state.pending
            actions.show_confirm_dialog(
                page,
                pending.title,
                pending.message,
                pending.confirm_label,
                on_confirm=lambda: page.run_thread(lambda: apply(controller.confirm())),
                on_cancel=lambda: apply(controller.dispatch(detail_state.Cancel())),
                danger=isinstance(pending, detail_state.ConfirmDelete),
            )

    def request(event):
        apply(controller.dispatch(event))

    def on_edit(_e=None):
        def saved(updated):
            apply(controller.dispatch(detail_state.Loaded(updated)))
            show_snack(page, "Issue aggiornata", COLOR_SUCCESS)

        actions.show_edit_issue_dialog(page, client, session, controller.state.issue, saved)

    attachment_state = AttachmentPanelState(
        client,
        issue_id,
        archived=not can_edit_attachments(session.get_user(), state.issue.archived),
    )
    attachment_panel = AttachmentPanel(page, attachment_state)

    def _detail_controls():
        st = controller.state
        issue = st.issue
        header_actions = []
        available = st.available_actions
        if not issue.archived:
            header_actions.append(
                ft.IconButton(icon=ft.Icons.EDIT_NOTE, tooltip="Modifica issue", on_click=on_edit)
            )
        if can_manage_issues(st.user) and not issue.archived:
            # shown even when not done: the click explains the precondition
            header_actions.append(
                ft.OutlinedButton(
                    "Archivia",
                    icon=ft.Icons.ARCHIVE_OUTLINED,
                    on_click=lambda _e: request(detail_state.RequestArchive()),
                )
            )
        if "unarchive" in available:
            header_actions.append(
                ft.OutlinedButton(
                    "Ripristina",
                    icon=ft.Icons.UNARCHIVE_OUTLINED,
                    on_click=lambda _e: request(detail_state.RequestUnarchive()),
                )
            )
        if "delete" in available:
            header_actions.append(
                ft.IconButton(
                    icon=ft.Icons.DELETE_OUTLINE,
                    tooltip="Elimina issue",
                    icon_color=COLOR_DANGER,
                    on_click=lambda _e: request(detail_state.RequestDelete()),
                )
            )

        header = ft.Row(
            controls=[
                ft.IconButton(
                    icon=ft.Icons.ARROW_BACK,
                    on_click=lambda e: on_back(back_route),
                    tooltip="Torna alla lista",
                ),
                ft.Text(
                    f"#{issue.id}  {issue.title}",
                    size=24,
                    weight=ft.FontWeight.BOLD,
                    expand=True,
                    color=COLOR_TEXT_MAIN,
                ),
                *header_actions,
                pill("Archiviata", COLOR_ARCHIVED) if issue.archived else pill(issue.status.label, status_color(issue.status)),
            ],
            spacing=8,
        )

        creator = issue.creator.full_name if issue.creator else "Sconosciuto"
        meta = [
            ft.Text(f"Creata da {creator} il {format_datetime(issue.created_at)}", size=13, color=COLOR_TEXT_MUTED),
        ]
        if issue.updated_at:
            meta.append(ft.Text(f"・ Modificata il {format_datetime(issue.updated_at)}", size=13, color=COLOR_TEXT_MUTED))
        if issue.archived and issue.archived_at:
            archiver = issue.archiver.full_name if issue.archiver else "—"
            meta.append(
                ft.Text(
                    f"・ Archiviata il {format_datetime(issue.archived_at)} da {archiver}",
                    size=13,
                    color=COLOR_TEXT_MUTED,
                )
            )

        controls = [
            header,
            ft.Row(meta, spacing=6, wrap=True),
            ft.Row(
                controls=[
                    pill(issue.type.label, type_color(issue.type)),
                    pill(f"Priorità: {issue.priority.label}", priority_color(issue.priority)),
                ],
                spacing=6,
            ),
        ]
        if st.error:
            controls.append(ft.Text(f"⚠  {st.error}", color=COLOR_DANGER, size=13))
        if st.phase is detail_state.DetailPhase.SUBMITTING:
            controls.append(ft.ProgressBar(height=3))
        controls.extend(
            [
                ft.Container(height=12),
                ft.Container(
                    content=ft.Text(issue.description or "(nessuna descrizione)", selectable=True, size=14),
                    padding=ft.Padding.all(16),
                    bgcolor=COLOR_CARD,
                    border_radius=BORDER_RADIUS_CARD,
                    width=980,
                ),
                ft.Container(height=16),
                attachment_panel,
            ]
        )
        return controls

    container.controls = _detail_controls()
    attachment_panel.load_async()
    return ft.Column(controls=[container], expand=True, scroll=ft.ScrollMode.AUTO)


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


def _stat_tile(label: str, value: int, color: str) -> ft.Container:
    return ft.Container(
        content=ft.Column(
            controls=[
                ft.Text(label, size=12, color=COLOR_TEXT_MUTED),
                ft.Text(str(value), size=22, weight=ft.FontWeight.BOLD, color=color),
            ],
            spacing=2,
        ),
        padding=ft.Padding.all(14),
        bgcolor=COLOR_CARD,
        border_radius=BORDER_RADIUS_CARD,
        border=ft.border.all(1, COLOR_BORDER),
        col={"xs": 6, "md": 3, "lg": 3},
    )


def build_dashboard_body(page: ft.Page, client, session, on_select_issue, on_new_issue) -> ft.Control:
    """Statistics and the most recent active issues (two separate requests)."""
    user = session.get_user()
    stats_row = ft.ResponsiveRow(spacing=12, run_spacing=12)
    recent_column = ft.Column(spacing=0)
    error_text = ft.Text("", color=COLOR_DANGER, size=13)

    def load():
        try:
            stats = issue_service.get_statistics(client)
            recent = issue_service.list_issues(client, archived=False)
        except BugBoardError as exc:
            error_text.value = exc.message
            page.update()
            return
        stats_row.controls = [
            _stat_tile("Totali", stats.total, COLOR_TEXT_MAIN),
            _stat_tile("Attive", stats.active, COLOR_PRIMARY),
            _stat_tile("Archiviate", stats.archived, COLOR_ARCHIVED),
            _stat_tile("Risolte", stats.resolved, COLOR_SUCCESS),
            _stat_tile("Todo", stats.todo, status_color(IssueStatus.TODO)),
            _stat_tile("In Progress", stats.in_progress, status_color(IssueStatus.IN_PROGRESS)),
            _stat_tile("Done", stats.done, status_color(IssueStatus.DONE)),
            _stat_tile("Non risolte", stats.unresolved, COLOR_DANGER),
        ]
        recent = sorted(recent, key=lambda i: i.created_at or "", reverse=True)[:RECENT_ISSUES_LIMIT]
        recent_column.controls = [
            IssueListCard(issue, on_select_issue) for issue in recent
        ] or [_empty_state("Nessuna issue presente")]
        page.update()

    page.run_thread(load)

    return ft.Column(
        expand=True,
        scroll=ft.ScrollMode.AUTO,
        spacing=16,
        controls=[
            _page_title(
                f"Benvenuto, {user.name}" if user else APP_TITLE,
                ft.FilledButton(
                    "Nuova issue",
                    icon=ft.Icons.ADD,
                    style=ft.ButtonStyle(bgcolor=COLOR_PRIMARY, color="white"),
                    on_click=lambda _e: on_new_issue(),
                ),
            ),
            error_text,
            stats_row,
            ft.Text("Issue recenti", size=16, weight=ft.FontWeight.BOLD, color=COLOR_TEXT_MAIN),
            recent_column,
        ],
    )


# ---------------------------------------------------------------------------
# Users (admin)
# ---------------------------------------------------------------------------


def build_users_body(page: ft.Page, client, session) -> ft.Control:
    users: list = []
    filters = {"text": "", "state": user_service.STATE_ALL}
    table_column = ft.Column(spacing=6)
    summary_text = ft.Text("", size=13, color=COLOR_TEXT_MUTED)
    error_text = ft.Text("", color=COLOR_DANGER, size=13)

    def render():
        visible = user_service.filter_users(users, filters["text"], filters["state"])
        summary_text.value = f"Visualizzazione di {len(visible)} di {len(users)} utenti"
        table_column.controls = [_user_row(u) for u in visible] or [_empty_state("Nessun utente trovato", ft.Icons.PERSON_OFF)]
        page.update()

    def load():
        nonlocal users
        try:
            users = user_service.list_users(client)
            error_text.value = ""
        except BugBoardError as exc:
            error_text.value = exc.message
        render()

    def toggle_active(user):
        def work():
            try:
                user_service.set_active(client, session, user, not user.active)
            except BugBoardError as exc:
                show_snack(page, exc.message, COLOR_DANGER)
                return
            load()

        verb = "Disattiva" if user.active else "Riattiva"
        actions.show_confirm_dialog(
            page,
            f"{verb} utente",
            f"{verb} l'account di {user.full_name}?",
            verb,
            on_confirm=lambda: page.run_thread(work),
            danger=user.active,
        )

    def _user_row(user):
        me = session.get_user()
        is_me = me is not None and me.id == user.id
        return ft.Container(
            content=ft.Row(
                controls=[
                    ft.CircleAvatar(
                        content=ft.Text((user.name[:1] or "?").upper()),
                        radius=16,
                        bgcolor=COLOR_PRIMARY if user.active else COLOR_BORDER,
                        color="white",
                    ),
                    ft.Column(
                        controls=[
                            ft.Text(user.full_name, weight=ft.FontWeight.W_500, color=COLOR_TEXT_MAIN),
                            ft.Text(user.email, size=12, color=COLOR_TEXT_MUTED),
                        ],
                        spacing=0,
                        expand=True,
                    ),
                    pill(user.role.label, COLOR_DANGER if user.role is Role.ADMIN else COLOR_PRIMARY),
                    pill("Attivo" if user.active else "Disattivato", COLOR_SUCCESS if user.active else COLOR_BORDER),
                    ft.IconButton(
                        icon=ft.Icons.MANAGE_ACCOUNTS,
                        tooltip="Cambia ruolo",
                        disabled=user.role is Role.ADMIN,
                        on_click=lambda _e: actions.show_role_dialog(page, client, session, user, lambda: page.run_thread(load)),
                    ),
                    ft.IconButton(
                        icon=ft.Icons.BLOCK if user.active else ft.Icons.CHECK_CIRCLE_OUTLINE,
                        tooltip="Disattiva" if user.active else "Riattiva",
                        disabled=is_me,
                        on_click=lambda _e: toggle_active(user),
                    ),
                ],
                spacing=12,
            ),
            padding=ft.Padding.all(12),
            bgcolor=COLOR_CARD,
            border_radius=BORDER_RADIUS_CARD,
        )

    def on_text(e):
        filters["text"] = e.control.value or ""
        render()

    def on_state(e):
        filters["state"] = e.control.value or user_service.STATE_ALL
        render()

    page.run_thread(load)

    return ft.Column(
        expand=True,
        scroll=ft.ScrollMode.AUTO,
        spacing=12,
        controls=[
            _page_title(
                "Utenti",
                ft.FilledButton(
                    "Nuova utenza",
                    icon=ft.Icons.PERSON_ADD,
                    style=ft.ButtonStyle(bgcolor=COLOR_PRIMARY, color="white"),
                    on_click=lambda _e: actions.show_new_user_dialog(page, client, session, lambda: page.run_thread(load)),
                ),
            ),
            ft.Row(
                controls=[
                    ft.TextField(
                        prefix_icon=ft.Icons.SEARCH,
                        hint_text="Cerca per nome...",
                        on_change=on_text,
                        border_radius=BORDER_RADIUS_BTN,
                        bgcolor=COLOR_CARD,
                        expand=True,
                    ),
                    _filter_dropdown(
                        "Stato",
                        [
                            ft.dropdown.Option(key=user_service.STATE_ALL, text="Tutti"),
                            ft.dropdown.Option(key=user_service.STATE_ACTIVE, text="Attivi"),
                            ft.dropdown.Option(key=user_service.STATE_INACTIVE, text="Disattivati"),
                        ],
                        user_service.STATE_ALL,
                        on_state,
                    ),
                ],
                spacing=12,
            ),
            ft.Row([summary_text, error_text], spacing=16),
            table_column,
        ],
    )
