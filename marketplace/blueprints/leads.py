"""Leads blueprint — /api/leads/*

Vendor-facing side of routing: the leads a vendor was routed, open
projects it can discover, bids, declines and completion.

Route Map:
  GET  /api/leads                         — Routed leads (?status=)
  GET  /api/leads/available               — Open projects not routed to me
  POST /api/leads/<project_id>/interest   — Express interest
  POST /api/leads/<project_id>/bids       — Submit / update bid
  GET  /api/leads/bids                    — My bids
  POST /api/leads/<project_id>/decline    — Decline / withdraw
  POST /api/leads/<project_id>/complete   — Mark selected project complete
"""

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user

from marketplace.decorators import role_required
from marketplace.errors import ValidationError
from marketplace.extensions import db, limiter
from marketplace.services import bid_service, lifecycle_service, routing_service
from marketplace.store import get_store

leads_bp = Blueprint("leads", __name__, url_prefix="/api/leads")


def _bid_limit():
    return current_app.config["BID_RATE_LIMIT"]


@leads_bp.route("", methods=["GET"])
@role_required("vendor")
def list_leads():
    routings = routing_service.list_routed_leads_for_vendor(
        get_store(),
        current_user.id,
        current_user.id,
        status=request.args.get("status") or None,
    )
    return jsonify(ok=True, leads=[r.to_dict(include_project=True) for r in routings])


@leads_bp.route("/available", methods=["GET"])
@role_required("vendor")
def available_projects():
    projects = routing_service.list_available_projects(
        get_store(), current_user.id, current_user.id
    )
    return jsonify(ok=True, projects=[p.to_dict() for p in projects])


@leads_bp.route("/<project_id>/interest", methods=["POST"])
@role_required("vendor")
def express_interest(project_id):
    routing = routing_service.express_interest(
        get_store(), project_id, current_user.id, current_user.id
    )
    db.session.commit()
    return jsonify(ok=True, routing=routing.to_dict())


@leads_bp.route("/<project_id>/bids", methods=["POST"])
@limiter.limit(_bid_limit)
@role_required("vendor")
def submit_bid(project_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")

    bid = bid_service.submit_bid(
        get_store(),
        project_id,
        current_user.id,
        data.get("bid_amount"),
        data.get("proposed_timeline"),
        current_user.id,
        notes=data.get("response_notes"),
        existing_bid_id=data.get("existing_bid_id"),
    )
    db.session.commit()
    status = 200 if data.get("existing_bid_id") else 201
    return jsonify(ok=True, bid=bid.to_dict()), status


@leads_bp.route("/bids", methods=["GET"])
@role_required("vendor")
def my_bids():
    bids = bid_service.list_bids_for_vendor(
        get_store(),
        current_user.id,
        current_user.id,
        status=request.args.get("status") or None,
    )
    return jsonify(
        ok=True,
        bids=[dict(b.to_dict(), project=b.project.to_dict()) for b in bids],
    )


@leads_bp.route("/<project_id>/decline", methods=["POST"])
@role_required("vendor")
def decline(project_id):
    project = lifecycle_service.decline_or_withdraw(
        get_store(), project_id, current_user.id, current_user.id
    )
    db.session.commit()
    return jsonify(ok=True, project_status=project.status)


@leads_bp.route("/<project_id>/complete", methods=["POST"])
@role_required("vendor")
def mark_complete(project_id):
    project = lifecycle_service.approve_completion(get_store(), project_id, current_user.id)
    db.session.commit()
    return jsonify(ok=True, project_status=project.status)
