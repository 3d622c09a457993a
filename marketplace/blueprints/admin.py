"""Admin blueprint — /api/admin/*

Vendor approval, the cross-business project list, dashboard metrics,
manual re-routing and the routing ledger overview.
All routes require the admin role.

Route Map:
  GET  /api/admin/vendors                        — Vendor list (?approved=true|false)
  POST /api/admin/vendors/<user_id>/approval     — {"approved": bool}
  GET  /api/admin/projects                       — All projects (?status=)
  GET  /api/admin/stats                          — Dashboard metrics
  POST /api/admin/projects/<id>/reroute          — Re-run the routing pass
  GET  /api/admin/routing                        — Routing ledger (?project_id=)
"""

from flask import Blueprint, jsonify, request
from flask_login import current_user

from marketplace.decorators import admin_required
from marketplace.errors import ValidationError
from marketplace.extensions import db
from marketplace.services import admin_service, routing_service, vendor_service
from marketplace.store import get_store

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")

_TRUTHY = {"1", "true", "yes"}
_FALSY = {"0", "false", "no"}


@admin_bp.route("/vendors", methods=["GET"])
@admin_required
def list_vendors():
    approved = request.args.get("approved")
    if approved is not None:
        approved = approved.lower()
        if approved not in _TRUTHY | _FALSY:
            raise ValidationError("approved must be true or false.")
        approved = approved in _TRUTHY
    vendors = vendor_service.list_vendors(get_store(), current_user.id, approved=approved)
    return jsonify(ok=True, vendors=[v.to_dict() for v in vendors])


@admin_bp.route("/vendors/<vendor_user_id>/approval", methods=["POST"])
@admin_required
def set_vendor_approval(vendor_user_id):
    data = request.get_json(silent=True) or {}
    if not isinstance(data.get("approved"), bool):
        raise ValidationError("approved must be true or false.")
    profile = vendor_service.set_approval(
        get_store(), vendor_user_id, data["approved"], current_user.id
    )
    db.session.commit()
    return jsonify(ok=True, vendor=profile.to_dict())


@admin_bp.route("/projects", methods=["GET"])
@admin_required
def list_projects():
    projects = admin_service.list_all_projects(
        get_store(), current_user.id, status=request.args.get("status") or None
    )
    return jsonify(ok=True, projects=projects)


@admin_bp.route("/stats", methods=["GET"])
@admin_required
def stats():
    return jsonify(ok=True, **admin_service.marketplace_stats(get_store(), current_user.id))


@admin_bp.route("/projects/<project_id>/reroute", methods=["POST"])
@admin_required
def reroute_project(project_id):
    outcome = routing_service.reroute_project(get_store(), project_id, current_user.id)
    db.session.commit()
    return jsonify(ok=True, routing=outcome.to_dict())


@admin_bp.route("/routing", methods=["GET"])
@admin_required
def routing_overview():
    rows = routing_service.routing_overview(
        get_store(),
        current_user.id,
        project_id=request.args.get("project_id") or None,
    )
    return jsonify(ok=True, routing=[r.to_dict(include_project=True) for r in rows])
