"""Projects blueprint — /api/projects/*

Business-facing project lifecycle. Each route calls one lifecycle
operation and commits on success; service errors become JSON via the
app-level MarketplaceError handler (the session is rolled back there).

Route Map:
  POST   /api/projects                  — Create draft
  GET    /api/projects                  — Caller's projects (?status=)
  GET    /api/projects/<id>             — Project view (shaped per caller)
  POST   /api/projects/<id>/publish     — draft → open + routing pass
  GET    /api/projects/<id>/bids        — Bids with vendor labels
  POST   /api/projects/<id>/assign      — Select vendor {"vendor_id"}
  POST   /api/projects/<id>/approve     — selected → completed
  POST   /api/projects/<id>/cancel      — Cancel {"reason"?}
  DELETE /api/projects/<id>             — Delete with cascade
  GET    /api/projects/<id>/activity    — Activity feed
"""

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from marketplace.decorators import role_required
from marketplace.errors import ValidationError
from marketplace.extensions import db
from marketplace.services import bid_service, lifecycle_service
from marketplace.store import get_store

projects_bp = Blueprint("projects", __name__, url_prefix="/api/projects")


def _json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")
    return data


@projects_bp.route("", methods=["POST"])
@role_required("business")
def create_project():
    project = lifecycle_service.create_project(get_store(), current_user.id, _json_body())
    db.session.commit()
    return jsonify(ok=True, project=project.to_dict()), 201


@projects_bp.route("", methods=["GET"])
@role_required("business", "admin")
def list_projects():
    business_id = request.args.get("business_id") or current_user.id
    projects = lifecycle_service.list_projects_for_business(
        get_store(),
        business_id,
        current_user.id,
        status=request.args.get("status") or None,
    )
    return jsonify(ok=True, projects=[p.to_dict() for p in projects])


@projects_bp.route("/<project_id>", methods=["GET"])
@login_required
def get_project(project_id):
    view = lifecycle_service.get_project(get_store(), project_id, current_user.id)
    return jsonify(ok=True, project=view)


@projects_bp.route("/<project_id>/publish", methods=["POST"])
@role_required("business")
def publish_project(project_id):
    project, outcome = lifecycle_service.publish_project(
        get_store(), project_id, current_user.id
    )
    db.session.commit()
    return jsonify(ok=True, project=project.to_dict(), routing=outcome.to_dict())


@projects_bp.route("/<project_id>/bids", methods=["GET"])
@role_required("business", "admin")
def list_project_bids(project_id):
    bids = bid_service.list_bids_for_project(get_store(), project_id, current_user.id)
    return jsonify(ok=True, bids=bids)


@projects_bp.route("/<project_id>/assign", methods=["POST"])
@role_required("business", "admin")
def assign_vendor(project_id):
    vendor_id = _json_body().get("vendor_id")
    if not vendor_id:
        raise ValidationError("vendor_id is required.")
    project = lifecycle_service.assign_vendor(
        get_store(), project_id, vendor_id, current_user.id
    )
    db.session.commit()
    return jsonify(ok=True, project=project.to_dict())


@projects_bp.route("/<project_id>/approve", methods=["POST"])
@role_required("business", "admin")
def approve_completion(project_id):
    project = lifecycle_service.approve_completion(get_store(), project_id, current_user.id)
    db.session.commit()
    return jsonify(ok=True, project=project.to_dict())


@projects_bp.route("/<project_id>/cancel", methods=["POST"])
@role_required("business", "admin")
def cancel_project(project_id):
    project = lifecycle_service.cancel_project(
        get_store(), project_id, current_user.id, reason=_json_body().get("reason")
    )
    db.session.commit()
    return jsonify(ok=True, project=project.to_dict())


@projects_bp.route("/<project_id>", methods=["DELETE"])
@role_required("business", "admin")
def delete_project(project_id):
    removed = lifecycle_service.delete_project(get_store(), project_id, current_user.id)
    db.session.commit()
    return jsonify(ok=True, removed=removed)


@projects_bp.route("/<project_id>/activity", methods=["GET"])
@role_required("business", "admin")
def project_activity(project_id):
    rows = lifecycle_service.get_project_activity(get_store(), project_id, current_user.id)
    return jsonify(ok=True, activity=[a.to_dict() for a in rows])
