"""
Permission checks for catalog and run access.

Key helpers:
- can_view_workflow(workflow, current_user)
- can_author(current_user)
- can_access_run(run, current_user)
"""
from typing import Any, Dict, Optional

from labflow.utils.vocab import WORKFLOW_PUBLISHED


def is_admin(current_user: Optional[Dict[str, Any]]) -> bool:
    return bool(current_user and current_user.get("is_admin"))


def can_view_workflow(workflow, current_user: Optional[Dict[str, Any]]) -> bool:
    """Published workflows are public; drafts and archived ones are admin-only."""
    if workflow is None:
        return False
    if getattr(workflow, "status", None) == WORKFLOW_PUBLISHED:
        return True
    return is_admin(current_user)


def can_author(current_user: Optional[Dict[str, Any]]) -> bool:
    return is_admin(current_user)


def can_access_run(run, current_user: Optional[Dict[str, Any]]) -> bool:
    """Runs are private to their user; admins may inspect any run."""
    if run is None or current_user is None:
        return False
    if is_admin(current_user):
        return True
    return getattr(run, "user_id", None) == current_user.get("id")
