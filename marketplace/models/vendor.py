"""Vendor capability profile.

One row per vendor user. Declares which service categories the vendor
offers and which coverage areas it serves. `is_approved` is an admin gate:
unapproved vendors never receive routed leads, whatever they declare.
"""

import uuid

from marketplace.extensions import db


vendor_services = db.Table(
    "vendor_services",
    db.Column(
        "vendor_profile_id",
        db.String(36),
        db.ForeignKey("vendor_profiles.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    db.Column(
        "service_category_id",
        db.String(36),
        db.ForeignKey("service_categories.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)

vendor_coverage_areas = db.Table(
    "vendor_coverage_areas",
    db.Column(
        "vendor_profile_id",
        db.String(36),
        db.ForeignKey("vendor_profiles.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    db.Column(
        "coverage_area_id",
        db.String(36),
        db.ForeignKey("coverage_areas.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class VendorProfile(db.Model):
    __tablename__ = "vendor_profiles"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), unique=True, nullable=False
    )
    company_name = db.Column(db.String(255), nullable=False)
    contact_email = db.Column(db.String(255), nullable=True)
    is_approved = db.Column(db.Boolean, default=False, nullable=False)
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    user = db.relationship("User", back_populates="vendor_profile")
    services = db.relationship(
        "ServiceCategory", secondary=vendor_services, lazy="selectin"
    )
    coverage_areas = db.relationship(
        "CoverageArea", secondary=vendor_coverage_areas, lazy="selectin"
    )

    @property
    def vendor_id(self):
        """Routing and bids key on the vendor's user id."""
        return self.user_id

    @property
    def service_ids(self):
        return {s.id for s in self.services}

    @property
    def coverage_area_ids(self):
        return [c.id for c in self.coverage_areas]

    def to_dict(self):
        return {
            "id": self.id,
            "vendor_id": self.user_id,
            "company_name": self.company_name,
            "contact_email": self.contact_email,
            "is_approved": bool(self.is_approved),
            "services": [s.to_dict() for s in self.services],
            "coverage_areas": [c.to_dict() for c in self.coverage_areas],
        }

    def __repr__(self):
        return f"<VendorProfile {self.company_name} approved={self.is_approved}>"
