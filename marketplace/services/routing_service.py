"""Routing service — the lead-routing pass and the routing ledger.

The routing pass runs once automatically, right after a project is
published, and again only when an admin asks for it:

    outcome = route_project(store, project_id)
    outcome.matched_vendor_ids   # vendors that received the lead

Steps:
  1. Load the project (must be open / in_review)
  2. Scan every approved vendor through the matcher (no writes yet)
  3. Matches → bulk-upsert "routed" rows + one "routed" activity, inside
     one SAVEPOINT so rows never exist without their activity
     No matches → one "routing_failed" activity; the project stays open

The (project, vendor) unique key makes the pass idempotent: existing rows
are left as they are, so a re-run never duplicates or downgrades a lead.

Ledger helpers used elsewhere: express_interest (vendor self-routes onto
an open project), advance_routing (bid submission), and the vendor/admin
listings.

Functions flush but do NOT commit — the caller commits.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

import sqlalchemy as sa
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from marketplace.errors import AuthorizationError, DependencyError, PreconditionError
from marketplace.models.project import Project
from marketplace.models.routing import ProjectRouting
from marketplace.services import matcher, vendor_service
from marketplace.services.access import (
    load_actor,
    load_project,
    require_admin,
    require_self_or_admin,
)
from marketplace.services.activity_service import record_activity
from marketplace.services.coverage_resolver import CoverageResolver

logger = logging.getLogger(__name__)

NO_MATCH_REASON = "No matching vendors found"

_ROUTING_KEY = ("project_id", "vendor_id")


@dataclass
class MatchedVendor:
    vendor_id: str
    company_name: str
    score: int
    reasons: list = field(default_factory=list)

    def to_dict(self):
        return {
            "vendor_id": self.vendor_id,
            "company_name": self.company_name,
            "score": self.score,
            "reasons": list(self.reasons),
        }


@dataclass
class RoutingOutcome:
    project_id: str
    matched: list = field(default_factory=list)
    new_records: int = 0
    ok: bool = True
    error: str = None

    @property
    def matched_vendor_ids(self):
        return [m.vendor_id for m in self.matched]

    def to_dict(self):
        return {
            "ok": self.ok,
            "project_id": self.project_id,
            "matched_vendors": len(self.matched),
            "new_records": self.new_records,
            "matched": [m.to_dict() for m in self.matched],
            "error": self.error,
        }


# ═══════════════════════════════════════════════════════════════════════
#  ROUTING PASS
# ═══════════════════════════════════════════════════════════════════════


def find_matching_vendors(store, project, resolver=None, points=None):
    """Scan approved vendors and return the ones that match the project.

    Read-only. Raises DependencyError if the vendor scan or a coverage
    lookup fails, so callers never act on a partial scan.
    """
    if points is None:
        points = current_app.config.get(
            "ROUTING_SCORE_PER_CRITERION", matcher.DEFAULT_POINTS_PER_CRITERION
        )
    resolver = resolver or CoverageResolver(store)

    matched = []
    try:
        with store.savepoint():
            vendors = vendor_service.list_approved_vendors(store)
            for vendor in vendors:
                result = matcher.match(project, vendor, resolver, points=points)
                if not result.is_match:
                    continue
                matched.append(
                    MatchedVendor(
                        vendor_id=vendor.user_id,
                        company_name=vendor.company_name,
                        score=result.score,
                        reasons=result.reasons,
                    )
                )
                logger.info(
                    f"[routing] Matched vendor {vendor.company_name} to project "
                    f"{project.id} (score: {result.score})"
                )
    except SQLAlchemyError as e:
        logger.error(f"[routing] Vendor scan failed for project {project.id}: {e}")
        raise DependencyError(
            "Vendor scan failed; routing did not complete. Retry later.",
        ) from e

    logger.info(
        f"[routing] Project {project.id}: {len(matched)} of {len(vendors)} "
        f"approved vendors matched"
    )
    return matched


def route_project(store, project_id, actor_user_id=None, resolver=None,
                  trigger="publish"):
    """Run the routing pass for a published project.

    Args:
        store: RecordStore.
        project_id: Project UUID string.
        actor_user_id: Who triggered the pass (None = system, on publish).
        resolver: Optional CoverageResolver (shared cache / test double).
        trigger: "publish" or "manual", recorded in the activity row.

    Returns:
        RoutingOutcome. Zero matches is a normal outcome, not an error.

    Raises:
        NotFoundError: project does not exist.
        PreconditionError: project is not open / in_review.
        DependencyError: scan or write failed; nothing was written.
    """
    project = load_project(store, project_id)
    if not project.is_actionable:
        raise PreconditionError(
            f"Only open projects can be routed (status is '{project.status}')."
        )

    matched = find_matching_vendors(store, project, resolver=resolver)

    if not matched:
        logger.info(f"[routing] No matching vendors found for project {project.id}")
        record_activity(
            store,
            project.id,
            "routing_failed",
            actor_user_id=actor_user_id,
            details={"reason": NO_MATCH_REASON, "matched_vendors": 0, "trigger": trigger},
        )
        return RoutingOutcome(project_id=project.id)

    now = datetime.now(timezone.utc)
    rows = [
        {
            "id": str(uuid.uuid4()),
            "project_id": project.id,
            "vendor_id": m.vendor_id,
            "status": "routed",
            "routed_at": now,
            "updated_at": now,
        }
        for m in matched
    ]

    try:
        with store.savepoint():
            created = store.bulk_upsert(ProjectRouting, rows, _ROUTING_KEY)
            record_activity(
                store,
                project.id,
                "routed",
                actor_user_id=actor_user_id,
                details={
                    "matched_vendors": len(matched),
                    "matched_vendor_ids": [m.vendor_id for m in matched],
                    "new_records": created,
                    "trigger": trigger,
                },
                required=True,
            )
    except SQLAlchemyError as e:
        logger.error(f"[routing] Writing routing records failed for project {project.id}: {e}")
        raise DependencyError(
            "Routing records could not be written; routing did not complete.",
        ) from e

    logger.info(
        f"[routing] Created {created} routing records for project {project.id} "
        f"({len(matched)} matched)"
    )
    return RoutingOutcome(project_id=project.id, matched=matched, new_records=created)


def reroute_project(store, project_id, acting_user_id, resolver=None):
    """Admin-only manual re-run of the routing pass."""
    require_admin(load_actor(store, acting_user_id))
    return route_project(
        store,
        project_id,
        actor_user_id=acting_user_id,
        resolver=resolver,
        trigger="manual",
    )


# ═══════════════════════════════════════════════════════════════════════
#  LEDGER OPERATIONS
# ═══════════════════════════════════════════════════════════════════════


def get_routing(store, project_id, vendor_id):
    return store.first(ProjectRouting, project_id=project_id, vendor_id=vendor_id)


def advance_routing(store, project_id, vendor_id, status):
    """Upsert the (project, vendor) routing row to the given status."""
    if status not in ProjectRouting.STATUSES:
        raise ValueError(f"Invalid routing status '{status}'.")
    now = datetime.now(timezone.utc)
    store.upsert(
        ProjectRouting,
        {
            "id": str(uuid.uuid4()),
            "project_id": project_id,
            "vendor_id": vendor_id,
            "status": status,
            "routed_at": now,
            "updated_at": now,
        },
        _ROUTING_KEY,
        update_cols=("status", "updated_at"),
    )
    return get_routing(store, project_id, vendor_id)


def express_interest(store, project_id, vendor_id, acting_user_id):
    """A vendor engages an open project it may not have been routed to.

    Creates an "interested" routing row, or re-opens a declined one.
    Existing active rows are returned unchanged.
    """
    actor = load_actor(store, acting_user_id)
    if actor.id != vendor_id:
        raise AuthorizationError("Vendors can only express interest for themselves.")

    profile = vendor_service.get_vendor_profile(store, vendor_id)
    if not profile.is_approved:
        raise PreconditionError("Vendor is not approved to receive leads.")

    project = load_project(store, project_id)
    if not project.is_actionable:
        raise PreconditionError(
            f"Project is not accepting vendors (status is '{project.status}')."
        )

    existing = get_routing(store, project_id, vendor_id)
    if existing is not None and existing.is_active:
        return existing
    previous_status = existing.status if existing is not None else None

    routing = advance_routing(store, project_id, vendor_id, "interested")
    record_activity(
        store,
        project_id,
        "interest_expressed",
        actor_user_id=acting_user_id,
        details={
            "vendor_id": vendor_id,
            "previous_status": previous_status,
        },
    )
    return routing


def list_routed_leads_for_vendor(store, vendor_id, acting_user_id, status=None):
    """Routing rows for a vendor with their projects joined, newest first."""
    actor = load_actor(store, acting_user_id)
    require_self_or_admin(actor, vendor_id, "vendor's leads")

    filters = {"vendor_id": vendor_id}
    if status:
        filters["status"] = status
    return store.find(
        ProjectRouting,
        order_by=ProjectRouting.routed_at.desc(),
        options=[joinedload(ProjectRouting.project)],
        **filters,
    )


def list_available_projects(store, vendor_id, acting_user_id):
    """Open projects this vendor has no routing row for (discovery list)."""
    actor = load_actor(store, acting_user_id)
    require_self_or_admin(actor, vendor_id, "vendor's leads")

    already_routed = sa.select(ProjectRouting.project_id).where(
        ProjectRouting.vendor_id == vendor_id
    )
    stmt = (
        sa.select(Project)
        .where(Project.status == "open")
        .where(Project.id.not_in(already_routed))
        .order_by(Project.created_at.desc())
    )
    return store.scalars(stmt)


def routing_overview(store, acting_user_id, project_id=None, limit=200):
    """Admin view of the routing ledger, newest first."""
    require_admin(load_actor(store, acting_user_id))
    stmt = (
        sa.select(ProjectRouting)
        .options(joinedload(ProjectRouting.project))
        .order_by(ProjectRouting.routed_at.desc())
        .limit(limit)
    )
    if project_id:
        stmt = stmt.where(ProjectRouting.project_id == project_id)
    return store.scalars(stmt)
