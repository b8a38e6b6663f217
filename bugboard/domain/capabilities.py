"""
capabilities.py - Role checks
Single responsibility: the one place that decides what a user may do.
"""
from typing import Any, Optional

from bugboard.domain.models import Role, User


def normalize_role(raw: Any) -> Role:
    """Map any known spelling ("admin", "Amministratore", ...) to a Role.

    Unknown or missing values fall back to Role.USER.
    """
    return Role.parse_optional(raw, Role.USER)


def is_admin(user: Optional[User]) -> bool:
    return user is not None and user.role is Role.ADMIN


def can_manage_issues(user: Optional[User]) -> bool:
    """Archive, unarchive and delete issues."""
    return is_admin(user)


def can_manage_users(user: Optional[User]) -> bool:
    return is_admin(user)


def can_edit_attachments(user: Optional[User], issue_archived: bool) -> bool:
    return user is not None and not issue_archived
