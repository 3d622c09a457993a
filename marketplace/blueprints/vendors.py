"""Vendors blueprint — /api/vendors/* and /api/catalog/*

Vendor profile self-service and the read-only reference catalog
(service categories, coverage areas) clients build forms from.
"""

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from marketplace.decorators import role_required
from marketplace.errors import ValidationError
from marketplace.extensions import db
from marketplace.services import vendor_service
from marketplace.store import get_store

vendors_bp = Blueprint("vendors", __name__, url_prefix="/api")


# ─── Vendor profile ──────────────────────────────────────────────

@vendors_bp.route("/vendors/me", methods=["GET"])
@role_required("vendor")
def my_profile():
    profile = vendor_service.get_vendor_profile(get_store(), current_user.id)
    return jsonify(ok=True, vendor=profile.to_dict())


@vendors_bp.route("/vendors/me", methods=["POST"])
@role_required("vendor")
def create_profile():
    """Onboarding. Body: {"company_name", "contact_email"?, "service_ids"?, "coverage_area_ids"?}

    The profile starts unapproved; an admin approves it before any routing.
    """
    data = _json_body()
    profile = vendor_service.create_vendor_profile(
        get_store(),
        current_user.id,
        data.get("company_name"),
        contact_email=data.get("contact_email"),
        service_ids=data.get("service_ids"),
        coverage_area_ids=data.get("coverage_area_ids"),
    )
    db.session.commit()
    return jsonify(ok=True, vendor=profile.to_dict()), 201


@vendors_bp.route("/vendors/me/capabilities", methods=["PUT"])
@role_required("vendor")
def update_capabilities():
    """Body: {"service_ids"?: [...], "coverage_area_ids"?: [...], "company_name"?}"""
    data = _json_body()
    profile = vendor_service.update_capabilities(
        get_store(),
        current_user.id,
        current_user.id,
        service_ids=data.get("service_ids"),
        coverage_area_ids=data.get("coverage_area_ids"),
        company_name=data.get("company_name"),
    )
    db.session.commit()
    return jsonify(ok=True, vendor=profile.to_dict())


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")
    for key in ("service_ids", "coverage_area_ids"):
        if key in data and not isinstance(data[key], list):
            raise ValidationError(f"{key} must be a list.")
    return data


# ─── Catalog ─────────────────────────────────────────────────────

@vendors_bp.route("/catalog/service-categories", methods=["GET"])
@login_required
def service_categories():
    categories = vendor_service.list_service_categories(get_store())
    return jsonify(ok=True, service_categories=[c.to_dict() for c in categories])


@vendors_bp.route("/catalog/coverage-areas", methods=["GET"])
@login_required
def coverage_areas():
    areas = vendor_service.list_coverage_areas(
        get_store(), state=request.args.get("state") or None
    )
    return jsonify(ok=True, coverage_areas=[a.to_dict() for a in areas])
