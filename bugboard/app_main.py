"""
app_main.py - BugBoard メインアプリケーション
BugBoard client v0.1
"""

import logging

import flet as ft

from bugboard.api.client import ApiClient
from bugboard.config import APP_TITLE, COLOR_BG, COLOR_PRIMARY, SESSION_PATH
from bugboard.domain.capabilities import can_manage_users
from bugboard.errors import AuthError
from bugboard.services import auth_service
from bugboard.session import Session
from bugboard.state.detail_state import ROUTE_ACTIVE_LIST, ROUTE_ARCHIVED_LIST
from bugboard.state.list_state import ClientFilteredList, ServerFilteredList
from bugboard.ui import actions, auth_views, views
from bugboard.ui.components.sidebar import build_sidebar
from bugboard.ui_state import AppState

logger = logging.getLogger(__name__)

PUBLIC_ROUTES = ("/login", "/recupera-password")


def parse_issue_route(route: str) -> int | None:
    """Issue id of a detail route ("/issues/42" -> 42), otherwise None."""
    parts = route.strip("/").split("/")
    if len(parts) == 2 and parts[0] == "issues" and parts[1].isdigit():
        return int(parts[1])
    return None


# ==========================================================================
# メインアプリ
# ==========================================================================


def main(page: ft.Page):
    page.title = APP_TITLE
    page.window.maximized = True
    page.theme_mode = ft.ThemeMode.LIGHT
    page.bgcolor = COLOR_BG
    page.padding = 0
    page.theme = ft.Theme(color_scheme_seed=COLOR_PRIMARY)

    session = Session.load(SESSION_PATH)
    client = ApiClient(session)
    state = AppState()

    def logout():
        auth_service.logout(session)
        navigate("/login")

    def toggle_sidebar():
        session.set_sidebar_open(not session.sidebar_open)
        navigate(state.route, state.nav_state)

    def open_issue(issue_id: int, from_route: str = ROUTE_ACTIVE_LIST):
        navigate(f"/issues/{issue_id}", {"from": from_route})

    def new_issue():
        actions.show_new_issue_dialog(
            page, client, session, on_created=lambda issue: open_issue(issue.id)
        )

    def shell(route: str, body: ft.Control) -> ft.View:
        sidebar = build_sidebar(
            session,
            current_route=route,
            on_navigate=navigate,
            on_toggle=toggle_sidebar,
            on_logout=logout,
        )
        return views.build_shell(route, sidebar, body)

    def build_view(route: str, nav_state: dict | None) -> ft.View:
        if route == "/login":
            return auth_views.build_login_view(
                page,
                client,
                session,
                on_logged_in=lambda: navigate("/"),
                on_forgot_password=lambda: navigate("/recupera-password"),
            )
        if route == "/recupera-password":
            return auth_views.build_recover_password_view(
                page, client, on_back=lambda: navigate("/login")
            )
        if route == ROUTE_ACTIVE_LIST:
            body = views.build_issue_list_body(
                page,
                client,
                session,
                ServerFilteredList(),
                on_select_issue=lambda iid: open_issue(iid, ROUTE_ACTIVE_LIST),
                on_new_issue=new_issue,
            )
            return shell(route, body)
        if route == ROUTE_ARCHIVED_LIST:
            body = views.build_issue_list_body(
                page,
                client,
                session,
                ClientFilteredList(),
                on_select_issue=lambda iid: open_issue(iid, ROUTE_ARCHIVED_LIST),
            )
            return shell(route, body)
        issue_id = parse_issue_route(route)
        if issue_id is not None:
            body = views.build_detail_body(
                page, client, session, issue_id, nav_state, on_back=navigate
            )
            return shell(route, body)
        if route == "/users" and can_manage_users(session.get_user()):
            return shell(route, views.build_users_body(page, client, session))
        if route == "/profile":
            return shell(route, auth_views.build_profile_body(page, client, session))
        return shell(
            "/",
            views.build_dashboard_body(
                page,
                client,
                session,
                on_select_issue=lambda iid: open_issue(iid, ROUTE_ACTIVE_LIST),
                on_new_issue=new_issue,
            ),
        )

    def navigate(route: str, nav_state: dict | None = None):
        if route not in PUBLIC_ROUTES and not session.is_authenticated():
            route, nav_state = "/login", None
        state.route = route
        state.nav_state = nav_state
        try:
            view = build_view(route, nav_state)
        except AuthError:
            logger.info("Session rejected by the server; back to login")
            auth_service.logout(session)
            navigate("/login")
            return
        except Exception as exc:
            logger.exception(f"Error building view for {route}")
            actions.show_error_dialog(page, "Si è verificato un errore", exc)
            return
        page.views.clear()
        page.views.append(view)
        page.update()

    def on_window_event(e: ft.WindowEvent):
        if e.type == ft.WindowEventType.CLOSE:
            client.close()

    page.window.on_event = on_window_event

    navigate("/" if session.is_authenticated() else "/login")


# ==========================================================================
# エントリーポイント
# ==========================================================================


if __name__ == "__main__":
    ft.app(main)
