"""Reference catalog models.

- ServiceCategory: a kind of service a project can require (e.g. "IT Services").
- CoverageArea: a state-level region a vendor can declare as serviceable.

Both are seeded by `flask seed-demo` and rarely change.
"""

import uuid

from marketplace.extensions import db


class ServiceCategory(db.Model):
    __tablename__ = "service_categories"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name = db.Column(db.String(255), unique=True, nullable=False)
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    def to_dict(self):
        return {"id": self.id, "name": self.name, "description": self.description}

    def __repr__(self):
        return f"<ServiceCategory {self.name}>"


class CoverageArea(db.Model):
    __tablename__ = "coverage_areas"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    state = db.Column(db.String(2), nullable=False)  # canonical 2-letter code
    region = db.Column(db.String(255), nullable=True)  # e.g. "Statewide", "Dallas Metro"
    zip_codes = db.Column(db.JSON, default=list)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    __table_args__ = (
        db.UniqueConstraint("state", "region", name="uq_coverage_state_region"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "state": self.state,
            "region": self.region,
            "zip_codes": self.zip_codes or [],
        }

    def __repr__(self):
        return f"<CoverageArea {self.state} {self.region or ''}>"
