"""Bid service — vendor proposals against routed projects.

One bid per (project, vendor). A vendor updates its bid by passing
existing_bid_id; submitting again without it is rejected so a second
row can never be created by accident.

A bid needs an active routing row (routed / interested / bid_submitted)
on a project that is still open or in review. The first bid moves the
project open → in_review.

Functions flush but do NOT commit — the caller commits.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload

from marketplace.errors import (
    AuthorizationError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from marketplace.models.bid import Bid
from marketplace.services import lifecycle_service, routing_service, vendor_service
from marketplace.services.access import (
    load_actor,
    load_project,
    require_owner_or_admin,
    require_self_or_admin,
)
from marketplace.services.activity_service import record_activity
from marketplace.services.sanitize import clean_text

logger = logging.getLogger(__name__)


def parse_amount(value):
    """Parse a bid amount ("5000", 5000, "$5,000.00") into a positive Decimal."""
    if value is None or value == "" or isinstance(value, bool):
        raise ValidationError("Bid amount is required.")
    try:
        amount = Decimal(str(value).strip().replace(",", "").lstrip("$"))
    except InvalidOperation:
        raise ValidationError("Bid amount must be a number.")
    if not amount.is_finite() or amount <= 0:
        raise ValidationError("Bid amount must be greater than zero.")
    return amount.quantize(Decimal("0.01"))


def submit_bid(store, project_id, vendor_id, amount, timeline, acting_user_id,
               notes=None, existing_bid_id=None):
    """Create or update a vendor's bid on a project.

    Args:
        store: RecordStore.
        project_id: Project UUID string.
        vendor_id: Bidding vendor's user id (must be the acting user).
        amount: Positive number or numeric string.
        timeline: Free-text proposed timeline, e.g. "3 weeks".
        acting_user_id: Acting user id.
        notes: Optional response notes.
        existing_bid_id: The vendor's current bid id, to update it in place.

    Returns:
        The Bid.
    """
    actor = load_actor(store, acting_user_id)
    if actor.id != vendor_id:
        raise AuthorizationError("Vendors can only submit bids for themselves.")

    amount = parse_amount(amount)
    timeline = clean_text(timeline)
    if not timeline:
        raise ValidationError("A proposed timeline is required.")
    notes = clean_text(notes) or None

    project = load_project(store, project_id)
    if not project.is_actionable:
        raise PreconditionError(
            f"Project is not accepting bids (status is '{project.status}')."
        )

    routing = routing_service.get_routing(store, project.id, vendor_id)
    if routing is None or not routing.is_active:
        raise PreconditionError(
            "You need an active lead on this project before bidding. "
            "Express interest first."
        )

    now = datetime.now(timezone.utc)

    if existing_bid_id:
        bid = store.get(Bid, existing_bid_id)
        if bid is None or bid.project_id != project.id or bid.vendor_id != vendor_id:
            raise NotFoundError("Bid not found for this vendor and project.")
        store.update(
            bid,
            bid_amount=amount,
            proposed_timeline=timeline,
            response_notes=notes,
            status="submitted",
            updated_at=now,
        )
        action = "bid_updated"
    else:
        existing = store.first(Bid, project_id=project.id, vendor_id=vendor_id)
        if existing is not None:
            raise PreconditionError(
                "You already have a bid on this project. Update it instead.",
                details={"existing_bid_id": existing.id},
            )
        bid = Bid(
            project_id=project.id,
            vendor_id=vendor_id,
            bid_amount=amount,
            proposed_timeline=timeline,
            response_notes=notes,
            status="submitted",
        )
        try:
            with store.savepoint():
                store.insert(bid)
        except IntegrityError:
            raise PreconditionError(
                "You already have a bid on this project. Update it instead."
            )
        action = "bid_submitted"

    if routing.status != "bid_submitted":
        routing_service.advance_routing(store, project.id, vendor_id, "bid_submitted")

    record_activity(
        store,
        project.id,
        action,
        actor_user_id=actor.id,
        details={
            "bid_id": bid.id,
            "vendor_id": vendor_id,
            "bid_amount": float(amount),
            "proposed_timeline": timeline,
        },
    )
    lifecycle_service.mark_in_review(store, project, actor.id)

    logger.info(
        f"Bid {bid.id} ({action}) on project {project.id} by vendor {vendor_id}: "
        f"${amount} / {timeline}"
    )
    return bid


def list_bids_for_vendor(store, vendor_id, acting_user_id, status=None):
    """A vendor's own bids with their projects, newest first."""
    actor = load_actor(store, acting_user_id)
    require_self_or_admin(actor, vendor_id, "vendor's bids")
    filters = {"vendor_id": vendor_id}
    if status:
        filters["status"] = status
    return store.find(
        Bid,
        order_by=Bid.created_at.desc(),
        options=[joinedload(Bid.project)],
        **filters,
    )


def list_bids_for_project(store, project_id, acting_user_id):
    """All bids on a project with vendor labels, for the owner or an admin."""
    actor = load_actor(store, acting_user_id)
    project = load_project(store, project_id)
    require_owner_or_admin(actor, project, "view bids for")

    bids = store.find(Bid, order_by=Bid.created_at.asc(), project_id=project.id)
    labels = vendor_service.vendor_labels(store, {b.vendor_id for b in bids})
    return [b.to_dict(vendor_profile=labels.get(b.vendor_id)) for b in bids]
