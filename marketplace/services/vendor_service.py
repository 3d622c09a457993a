"""Vendor directory — capability profiles, approval gate, label lookups.

The routing pass reads approved profiles from here. Vendors maintain their
own services and coverage; only admins flip `is_approved`.

Functions flush but do NOT commit — the caller commits.
"""

import logging
from datetime import datetime, timezone

from marketplace.errors import NotFoundError, ValidationError
from marketplace.models.catalog import CoverageArea, ServiceCategory
from marketplace.models.user import User
from marketplace.models.vendor import VendorProfile
from marketplace.services.access import load_actor, require_admin, require_self_or_admin
from marketplace.services.coverage_resolver import normalize_state
from marketplace.services.sanitize import clean_text

logger = logging.getLogger(__name__)


def list_approved_vendors(store):
    """All approved vendor profiles, capabilities eager-loaded."""
    return store.find(
        VendorProfile,
        order_by=VendorProfile.company_name.asc(),
        is_approved=True,
    )


def list_vendors(store, acting_user_id, approved=None):
    """Admin listing of vendor profiles, optionally filtered by approval."""
    require_admin(load_actor(store, acting_user_id))
    filters = {}
    if approved is not None:
        filters["is_approved"] = bool(approved)
    return store.find(
        VendorProfile, order_by=VendorProfile.company_name.asc(), **filters
    )


def get_vendor_profile(store, vendor_user_id):
    profile = store.first(VendorProfile, user_id=vendor_user_id)
    if profile is None:
        raise NotFoundError(f"Vendor profile for user {vendor_user_id} not found.")
    return profile


def create_vendor_profile(store, user_id, company_name, contact_email=None,
                          service_ids=None, coverage_area_ids=None):
    """Create the capability profile for a vendor user (unapproved)."""
    user = store.get(User, user_id)
    if user is None or not user.is_vendor:
        raise ValidationError("Vendor profiles can only be created for vendor users.")
    if store.first(VendorProfile, user_id=user_id) is not None:
        raise ValidationError("This vendor already has a profile.")

    company_name = clean_text(company_name)
    if not company_name:
        raise ValidationError("Company name is required.")

    contact_email = clean_text(contact_email) or user.email
    if "@" not in contact_email:
        raise ValidationError("Contact email must be a valid email address.")

    profile = VendorProfile(
        user_id=user_id,
        company_name=company_name,
        contact_email=contact_email.lower(),
        is_approved=False,
    )
    profile.services = _load_categories(store, service_ids or [])
    profile.coverage_areas = _load_coverage_areas(store, coverage_area_ids or [])
    store.insert(profile)
    logger.info(f"Vendor profile created for {user.email} ({company_name}), pending approval")
    return profile


def update_capabilities(store, vendor_user_id, acting_user_id, service_ids=None,
                        coverage_area_ids=None, company_name=None):
    """Replace a vendor's declared services and/or coverage areas.

    Args left as None are not changed. Unknown ids are a ValidationError.
    Changes take effect for future routing passes only.
    """
    actor = load_actor(store, acting_user_id)
    require_self_or_admin(actor, vendor_user_id, "vendor profile")
    profile = get_vendor_profile(store, vendor_user_id)

    if company_name is not None:
        company_name = clean_text(company_name)
        if not company_name:
            raise ValidationError("Company name cannot be empty.")
        profile.company_name = company_name
    if service_ids is not None:
        profile.services = _load_categories(store, service_ids)
    if coverage_area_ids is not None:
        profile.coverage_areas = _load_coverage_areas(store, coverage_area_ids)

    store.flush()
    logger.info(
        f"Vendor {vendor_user_id} capabilities updated: "
        f"{len(profile.services)} services, {len(profile.coverage_areas)} coverage areas"
    )
    return profile


def set_approval(store, vendor_user_id, approved, acting_user_id):
    """Admin gate: approve or revoke a vendor for lead routing."""
    require_admin(load_actor(store, acting_user_id))
    profile = get_vendor_profile(store, vendor_user_id)

    approved = bool(approved)
    if profile.is_approved == approved:
        return profile  # no-op

    store.update(
        profile,
        is_approved=approved,
        approved_at=datetime.now(timezone.utc) if approved else None,
    )
    logger.info(
        f"Vendor {profile.company_name} ({vendor_user_id}) "
        f"{'approved' if approved else 'approval revoked'} by {acting_user_id}"
    )
    return profile


def list_service_categories(store):
    return store.find(ServiceCategory, order_by=ServiceCategory.name.asc())


def list_coverage_areas(store, state=None):
    filters = {}
    if state:
        filters["state"] = normalize_state(state) or state.strip().upper()
    return store.find(
        CoverageArea,
        order_by=CoverageArea.state.asc(),
        **filters,
    )


def vendor_labels(store, vendor_ids):
    """Batch-resolve display info for a set of vendor user ids.

    Returns {vendor_id: {"company_name": ..., "contact_email": ...}} using a
    single query, so callers never fetch profiles one by one.
    """
    vendor_ids = {v for v in vendor_ids if v}
    if not vendor_ids:
        return {}
    profiles = store.find(VendorProfile, user_id=vendor_ids)
    return {
        p.user_id: {"company_name": p.company_name, "contact_email": p.contact_email}
        for p in profiles
    }


def _load_categories(store, service_ids):
    ids = set(service_ids)
    if not ids:
        return []
    categories = store.find(ServiceCategory, id=ids)
    unknown = ids - {c.id for c in categories}
    if unknown:
        raise ValidationError(
            f"Unknown service categories: {', '.join(sorted(unknown))}"
        )
    return categories


def _load_coverage_areas(store, coverage_area_ids):
    ids = set(coverage_area_ids)
    if not ids:
        return []
    areas = store.find(CoverageArea, id=ids)
    unknown = ids - {a.id for a in areas}
    if unknown:
        raise ValidationError(
            f"Unknown coverage areas: {', '.join(sorted(unknown))}"
        )
    return areas
