"""Project lifecycle — the only code that writes Project.status.

State machine (Project.VALID_TRANSITIONS):

    draft     → open | cancelled
    open      → in_review | selected | cancelled
    in_review → selected | cancelled
    selected  → completed | cancelled | open | in_review
    completed, cancelled: terminal

selected → open / in_review only happens when the selected vendor
declines (decline_or_withdraw).

Every status change is a compare-and-set on the current status, and
writes exactly one activity row. Selection is additionally guarded on
`selected_vendor_id IS NULL`, so two concurrent assignments can never
both win: the first commit wins, the second is rejected unless it names
the same vendor.

Functions flush but do NOT commit — the caller commits.
"""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation

from marketplace.errors import (
    AuthorizationError,
    DependencyError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from marketplace.models.activity import ProjectActivity
from marketplace.models.bid import Bid
from marketplace.models.catalog import ServiceCategory
from marketplace.models.project import Project, ProjectDetails
from marketplace.models.routing import ProjectRouting
from marketplace.services import routing_service, vendor_service
from marketplace.services.access import (
    is_owner_or_admin,
    load_actor,
    load_project,
    require_owner_or_admin,
    require_self_or_admin,
)
from marketplace.services.activity_service import list_activity, record_activity
from marketplace.services.coverage_resolver import normalize_state
from marketplace.services.sanitize import clean_text

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════
#  TRANSITIONS
# ═══════════════════════════════════════════════════════════════════════


def can_transition(from_status, to_status):
    return to_status in Project.VALID_TRANSITIONS.get(from_status, [])


def _transition(store, project, new_status, actor_user_id, action, details=None,
                **values):
    """Move a project to new_status if legal and nobody changed it meanwhile."""
    old_status = project.status
    if not can_transition(old_status, new_status):
        raise PreconditionError(
            f"Cannot move project from '{old_status}' to '{new_status}'."
        )

    updated = store.conditional_update(
        Project,
        project.id,
        expected={"status": old_status},
        values={"status": new_status, **values},
    )
    if not updated:
        logger.warning(
            f"Project {project.id} changed while moving {old_status} → {new_status}"
        )
        raise PreconditionError(
            "Project was modified by another request. Reload and try again."
        )

    payload = {"from_status": old_status, "to_status": new_status}
    payload.update(details or {})
    record_activity(store, project.id, action, actor_user_id=actor_user_id, details=payload)
    logger.info(f"Project {project.id}: {old_status} → {new_status} ({action})")
    return project


# ═══════════════════════════════════════════════════════════════════════
#  CREATE / PUBLISH
# ═══════════════════════════════════════════════════════════════════════


def create_project(store, acting_user_id, data):
    """Create a draft project for a business user.

    Args:
        store: RecordStore.
        acting_user_id: The business user creating the project.
        data: Dict with title, service_category (id or name), project_state,
            and optional description, budget_min/budget_max,
            timeline_start/timeline_end (ISO dates), project_city,
            project_zip, special_requirements, details.

    Returns:
        The new Project in status 'draft'.
    """
    actor = load_actor(store, acting_user_id)
    if not actor.is_business:
        raise AuthorizationError("Only business accounts can create projects.")

    title = clean_text(data.get("title"))
    if not title:
        raise ValidationError("Project title is required.")

    category = _resolve_category(
        store, data.get("service_category_id") or data.get("service_category")
    )

    state = normalize_state(data.get("project_state"))
    if state is None:
        raise ValidationError("A valid US state is required for the project location.")

    budget_min = _parse_money(data.get("budget_min"), "budget_min")
    budget_max = _parse_money(data.get("budget_max"), "budget_max")
    if (budget_min is None) != (budget_max is None):
        raise ValidationError("Provide both a minimum and a maximum budget, or neither.")
    if budget_min is not None and budget_min > budget_max:
        raise ValidationError("Minimum budget cannot exceed maximum budget.")

    timeline_start = _parse_date(data.get("timeline_start"), "timeline_start")
    timeline_end = _parse_date(data.get("timeline_end"), "timeline_end")
    if timeline_start and timeline_end and timeline_start > timeline_end:
        raise ValidationError("Timeline start must be on or before timeline end.")

    details = data.get("details")
    if isinstance(details, ProjectDetails):
        project_details = details
    elif details is None or isinstance(details, dict):
        project_details = ProjectDetails.from_dict(details)
    else:
        raise ValidationError("Project details must be an object.")
    if project_details.additional_notes:
        project_details.additional_notes = clean_text(project_details.additional_notes)

    project = Project(
        business_id=actor.id,
        title=title,
        description=clean_text(data.get("description")) or "",
        service_category_id=category.id,
        budget_min=budget_min,
        budget_max=budget_max,
        timeline_start=timeline_start,
        timeline_end=timeline_end,
        project_city=clean_text(data.get("project_city")) or None,
        project_state=state,
        project_zip=clean_text(data.get("project_zip")) or None,
        special_requirements=clean_text(data.get("special_requirements")) or None,
        status="draft",
    )
    project.project_details = project_details
    store.insert(project)

    record_activity(
        store,
        project.id,
        "created",
        actor_user_id=actor.id,
        details={"service_category": category.name, "project_state": state},
    )
    logger.info(f"Project {project.id} created by {actor.email} ({category.name}, {state})")
    return project


def publish_project(store, project_id, acting_user_id, resolver=None):
    """draft → open, then run the routing pass once.

    Returns:
        (project, RoutingOutcome). If routing could not complete the
        project still stays open; outcome.ok is False and an admin can
        re-route it later.
    """
    actor = load_actor(store, acting_user_id)
    project = load_project(store, project_id)
    if project.business_id != actor.id:
        raise AuthorizationError("Only the owning business can publish this project.")
    if project.status != "draft":
        raise PreconditionError(
            f"Only draft projects can be published (status is '{project.status}')."
        )

    _transition(
        store,
        project,
        "open",
        actor.id,
        "published",
        published_at=datetime.now(timezone.utc),
    )

    try:
        outcome = routing_service.route_project(store, project.id, resolver=resolver)
    except DependencyError as e:
        logger.error(f"Routing failed for published project {project.id}: {e.message}")
        record_activity(
            store,
            project.id,
            "routing_failed",
            details={
                "reason": e.message,
                "matched_vendors": 0,
                "trigger": "publish",
                "retryable": True,
            },
        )
        outcome = routing_service.RoutingOutcome(
            project_id=project.id, ok=False, error=e.message
        )
    return project, outcome


def mark_in_review(store, project, acting_user_id):
    """open → in_review once the first bid arrives. No-op otherwise."""
    if project.status != "open":
        return project
    return _transition(
        store,
        project,
        "in_review",
        acting_user_id,
        "in_review",
        details={"reason": "bid received"},
    )


# ═══════════════════════════════════════════════════════════════════════
#  SELECTION / COMPLETION
# ═══════════════════════════════════════════════════════════════════════


def assign_vendor(store, project_id, vendor_id, acting_user_id):
    """Select the winning vendor (single-winner, first commit wins).

    Re-assigning the vendor that is already selected is a no-op; any
    other vendor is rejected with PreconditionError.
    """
    actor = load_actor(store, acting_user_id)
    project = load_project(store, project_id)
    require_owner_or_admin(actor, project, "assign a vendor to")

    if project.selected_vendor_id == vendor_id:
        return project
    if project.selected_vendor_id is not None:
        raise PreconditionError("A vendor has already been selected for this project.")
    if not can_transition(project.status, "selected"):
        raise PreconditionError(
            f"Cannot select a vendor while the project is '{project.status}'."
        )

    routing = routing_service.get_routing(store, project.id, vendor_id)
    bid = store.first(Bid, project_id=project.id, vendor_id=vendor_id)
    has_lead = routing is not None and routing.is_active
    has_bid = bid is not None and bid.is_live
    if not (has_lead or has_bid):
        raise PreconditionError("This vendor has no active lead or bid on the project.")

    old_status = project.status
    won = store.conditional_update(
        Project,
        project.id,
        expected={
            "selected_vendor_id": None,
            "status": Project.ACTIONABLE_STATUSES,
        },
        values={"status": "selected", "selected_vendor_id": vendor_id},
    )
    if not won:
        if project.selected_vendor_id == vendor_id:
            return project
        logger.warning(
            f"Selection conflict on project {project.id}: vendor {vendor_id} lost "
            f"to {project.selected_vendor_id}"
        )
        raise PreconditionError("Another vendor was selected for this project first.")

    # a withdrawn bid stays withdrawn; the vendor is selected on its lead
    if has_bid:
        store.update(bid, status="accepted", is_selected=True)

    record_activity(
        store,
        project.id,
        "vendor_selected",
        actor_user_id=actor.id,
        details={
            "from_status": old_status,
            "to_status": "selected",
            "vendor_id": vendor_id,
            "bid_id": bid.id if has_bid else None,
        },
    )
    logger.info(f"Project {project.id}: vendor {vendor_id} selected by {actor.email}")
    return project


def approve_completion(store, project_id, acting_user_id):
    """selected → completed, by the owner, the selected vendor, or an admin."""
    actor = load_actor(store, acting_user_id)
    project = load_project(store, project_id)
    is_selected_vendor = (
        project.selected_vendor_id is not None and project.selected_vendor_id == actor.id
    )
    if not (is_owner_or_admin(actor, project) or is_selected_vendor):
        raise AuthorizationError("Not authorized to complete this project.")
    if project.status != "selected":
        raise PreconditionError(
            f"Only projects with a selected vendor can be completed "
            f"(status is '{project.status}')."
        )

    return _transition(
        store,
        project,
        "completed",
        actor.id,
        "completed",
        details={"completed_by": "vendor" if is_selected_vendor else actor.role},
        completed_at=datetime.now(timezone.utc),
    )


# ═══════════════════════════════════════════════════════════════════════
#  DECLINE / CANCEL / DELETE
# ═══════════════════════════════════════════════════════════════════════


def decline_or_withdraw(store, project_id, vendor_id, acting_user_id):
    """A vendor drops a lead: routing → declined, live bid → withdrawn.

    If the vendor was the selected one, the selection is reverted and the
    project goes back to in_review (other live bids) or open.
    """
    actor = load_actor(store, acting_user_id)
    if actor.id != vendor_id:
        raise AuthorizationError("Vendors can only decline their own leads.")

    project = load_project(store, project_id)
    routing = routing_service.get_routing(store, project.id, vendor_id)
    if routing is None:
        raise NotFoundError("No lead for this vendor on this project.")
    if project.is_terminal:
        raise PreconditionError(f"Project is already {project.status}.")
    if routing.status == "declined":
        return project

    now = datetime.now(timezone.utc)
    store.update(routing, status="declined", updated_at=now)

    bid = store.first(Bid, project_id=project.id, vendor_id=vendor_id)
    bid_withdrawn = False
    if bid is not None and bid.is_live:
        store.update(bid, status="withdrawn", is_selected=False, updated_at=now)
        bid_withdrawn = True

    details = {"vendor_id": vendor_id, "bid_withdrawn": bid_withdrawn}

    if project.status == "selected" and project.selected_vendor_id == vendor_id:
        live_bids = store.count(
            Bid, project_id=project.id, status=Bid.LIVE_STATUSES
        )
        new_status = "in_review" if live_bids else "open"
        details["selection_reverted"] = True
        return _transition(
            store,
            project,
            new_status,
            actor.id,
            "declined",
            details=details,
            selected_vendor_id=None,
        )

    record_activity(store, project.id, "declined", actor_user_id=actor.id, details=details)
    logger.info(f"Vendor {vendor_id} declined project {project.id}")
    return project


def cancel_project(store, project_id, acting_user_id, reason=None):
    actor = load_actor(store, acting_user_id)
    project = load_project(store, project_id)
    require_owner_or_admin(actor, project, "cancel")
    if project.is_terminal:
        raise PreconditionError(f"Project is already {project.status}.")

    details = {}
    if reason:
        details["reason"] = clean_text(reason)
    return _transition(
        store,
        project,
        "cancelled",
        actor.id,
        "cancelled",
        details=details,
        cancelled_at=datetime.now(timezone.utc),
    )


def delete_project(store, project_id, acting_user_id):
    """Remove a project and its routing, bid and activity rows.

    Refused while any bid is still live; cancel the project first or
    wait for vendors to withdraw.
    """
    actor = load_actor(store, acting_user_id)
    project = load_project(store, project_id)
    require_owner_or_admin(actor, project, "delete")

    live_bids = store.count(Bid, project_id=project.id, status=Bid.LIVE_STATUSES)
    if live_bids and project.status != "cancelled":
        raise PreconditionError(
            "Project has live bids and cannot be deleted. Cancel it first."
        )

    removed = {
        "activity": store.delete_where(ProjectActivity, project_id=project.id),
        "bids": store.delete_where(Bid, project_id=project.id),
        "routing": store.delete_where(ProjectRouting, project_id=project.id),
    }
    store.delete_where(Project, id=project.id)
    logger.info(f"Project {project_id} deleted by {actor.email}: {removed}")
    return removed


# ═══════════════════════════════════════════════════════════════════════
#  READS
# ═══════════════════════════════════════════════════════════════════════


def get_project(store, project_id, acting_user_id):
    """Project view shaped for the caller.

    Owner / admin: every bid with vendor labels, plus the routing count.
    Routed vendor: its own routing row and bid only.
    Other approved vendors: open projects only, no bids (discovery).
    """
    actor = load_actor(store, acting_user_id)
    project = load_project(store, project_id)
    view = project.to_dict()

    if is_owner_or_admin(actor, project):
        bids = store.find(Bid, order_by=Bid.created_at.asc(), project_id=project.id)
        labels = vendor_service.vendor_labels(
            store, {b.vendor_id for b in bids} | {project.selected_vendor_id}
        )
        view["bids"] = [b.to_dict(vendor_profile=labels.get(b.vendor_id)) for b in bids]
        view["selected_vendor"] = labels.get(project.selected_vendor_id)
        view["routed_vendors"] = store.count(ProjectRouting, project_id=project.id)
        return view

    if actor.is_vendor:
        routing = routing_service.get_routing(store, project.id, actor.id)
        if routing is not None:
            bid = store.first(Bid, project_id=project.id, vendor_id=actor.id)
            view["routing"] = routing.to_dict()
            view["bids"] = [bid.to_dict()] if bid is not None else []
            return view
        if project.status == "open":
            view["bids"] = []
            return view

    raise AuthorizationError("Not authorized to view this project.")


def list_projects_for_business(store, business_id, acting_user_id, status=None):
    actor = load_actor(store, acting_user_id)
    require_self_or_admin(actor, business_id, "business's projects")
    filters = {"business_id": business_id}
    if status:
        filters["status"] = status
    return store.find(Project, order_by=Project.created_at.desc(), **filters)


def get_project_activity(store, project_id, acting_user_id):
    actor = load_actor(store, acting_user_id)
    project = load_project(store, project_id)
    require_owner_or_admin(actor, project, "view activity for")
    return list_activity(store, project.id)


# ═══════════════════════════════════════════════════════════════════════
#  INPUT PARSING
# ═══════════════════════════════════════════════════════════════════════


def _resolve_category(store, value):
    """Accept a category id or a (case-insensitive) category name."""
    if not value or not str(value).strip():
        raise ValidationError("A service category is required.")
    value = str(value).strip()

    category = store.get(ServiceCategory, value)
    if category is None:
        category = next(
            (c for c in store.find(ServiceCategory) if c.name.lower() == value.lower()),
            None,
        )
    if category is None:
        raise ValidationError(f"Unknown service category '{value}'.")
    return category


def _parse_money(value, field_name):
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number.")
    try:
        amount = Decimal(str(value).replace(",", "").lstrip("$"))
    except InvalidOperation:
        raise ValidationError(f"{field_name} must be a number.")
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f"{field_name} must be a non-negative amount.")
    return amount.quantize(Decimal("0.01"))


def _parse_date(value, field_name):
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD).")
