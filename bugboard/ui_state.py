"""
ui_state.py - UI state container
"""


class AppState:
    def __init__(self):
        self.route: str = "/"
        # navigation state carried across a route change, e.g. {"from": "/issues/archived"}
        self.nav_state: dict | None = None
