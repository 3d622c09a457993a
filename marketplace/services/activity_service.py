"""Activity service — append-only project audit trail.

Every lifecycle transition and routing decision writes one row here.
Writes are best-effort: each runs in its own SAVEPOINT, and a failure is
logged and swallowed so it never undoes the state change it describes.

Functions flush but do NOT commit — the caller commits.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError

from marketplace.models.activity import ProjectActivity

logger = logging.getLogger(__name__)


def record_activity(store, project_id, action, actor_user_id=None, details=None,
                    required=False):
    """Append an activity row for a project.

    Args:
        store: RecordStore.
        project_id: Project UUID string.
        action: One of ProjectActivity.ACTIONS.
        actor_user_id: Acting user, or None for system-originated events.
        details: JSON-serialisable dict of extra context.
        required: If True, a failed write raises instead of being swallowed.
            Used when the row must commit together with other writes.

    Returns:
        The ProjectActivity, or None if the write failed.
    """
    if required:
        activity = ProjectActivity(
            project_id=project_id,
            actor_user_id=actor_user_id,
            action=action,
            details=details or {},
            created_at=datetime.now(timezone.utc),
        )
        return store.insert(activity)

    try:
        with store.savepoint():
            activity = ProjectActivity(
                project_id=project_id,
                actor_user_id=actor_user_id,
                action=action,
                details=details or {},
                created_at=datetime.now(timezone.utc),
            )
            store.insert(activity)
    except SQLAlchemyError as e:
        logger.warning(
            f"Activity '{action}' for project {project_id} was not recorded: {e}"
        )
        return None

    logger.debug(f"Activity '{action}' recorded for project {project_id}")
    return activity


def list_activity(store, project_id, action=None):
    """Return a project's activity rows, oldest first."""
    filters = {"project_id": project_id}
    if action:
        filters["action"] = action
    return store.find(
        ProjectActivity,
        order_by=ProjectActivity.created_at.asc(),
        **filters,
    )
