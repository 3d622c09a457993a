"""Admin service — cross-business project listing and marketplace metrics.

Functions are read-only and admin-gated.
"""

import sqlalchemy as sa
from sqlalchemy.orm import joinedload

from marketplace.models.bid import Bid
from marketplace.models.project import Project
from marketplace.models.routing import ProjectRouting
from marketplace.models.user import User
from marketplace.models.vendor import VendorProfile
from marketplace.services.access import load_actor, require_admin

RECENT_PROJECTS_LIMIT = 5


def list_all_projects(store, acting_user_id, status=None):
    """Every project across businesses, newest first, with the business name."""
    require_admin(load_actor(store, acting_user_id))

    stmt = (
        sa.select(Project)
        .options(joinedload(Project.business))
        .order_by(Project.created_at.desc())
    )
    if status:
        stmt = stmt.where(Project.status == status)
    projects = store.scalars(stmt)

    routed = _routed_counts(store, [p.id for p in projects])
    return [
        dict(
            p.to_dict(),
            business_name=_business_name(p.business),
            routed_vendors=routed.get(p.id, 0),
        )
        for p in projects
    ]


def marketplace_stats(store, acting_user_id):
    """Dashboard metrics for the admin overview.

    match_rate is the percentage of published (non-draft) projects that
    reached at least one vendor.
    """
    require_admin(load_actor(store, acting_user_id))

    # --- Accounts ---
    total_vendors = store.count(VendorProfile)
    approved_vendors = store.count(VendorProfile, is_approved=True)

    # --- Projects by status ---
    project_counts = {status: 0 for status in Project.STATUSES}
    rows = store.execute(
        sa.select(Project.status, sa.func.count()).group_by(Project.status)
    )
    for status, count in rows:
        project_counts[status] = count
    total_projects = sum(project_counts.values())

    # --- Match rate ---
    published = total_projects - project_counts["draft"]
    reached = store.execute(
        sa.select(sa.func.count(sa.distinct(ProjectRouting.project_id)))
    ).scalar()
    match_rate = round((reached / published) * 100, 1) if published > 0 else 0

    # --- Recent projects ---
    recent = store.scalars(
        sa.select(Project)
        .order_by(Project.created_at.desc())
        .limit(RECENT_PROJECTS_LIMIT)
    )
    routed = _routed_counts(store, [p.id for p in recent])

    return {
        "metrics": {
            "total_businesses": store.count(User, role="business"),
            "total_vendors": total_vendors,
            "approved_vendors": approved_vendors,
            "pending_vendors": total_vendors - approved_vendors,
            "total_projects": total_projects,
            "open_projects": project_counts["open"],
            "projects_by_status": project_counts,
            "total_bids": store.count(Bid),
            "total_routed": store.count(ProjectRouting),
            "match_rate": match_rate,
        },
        "recent_projects": [
            dict(p.to_dict(), routed_vendors=routed.get(p.id, 0)) for p in recent
        ],
    }


def _routed_counts(store, project_ids):
    if not project_ids:
        return {}
    rows = store.execute(
        sa.select(ProjectRouting.project_id, sa.func.count())
        .where(ProjectRouting.project_id.in_(project_ids))
        .group_by(ProjectRouting.project_id)
    )
    return {project_id: count for project_id, count in rows}


def _business_name(user):
    if user is None:
        return "Unknown"
    return user.company_name or user.full_name or "Unknown"
