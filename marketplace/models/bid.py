"""Bid (vendor response) model.

A vendor's priced proposal for a project. One row per (project, vendor):
resubmission updates the row in place.
"""

import uuid

from marketplace.extensions import db


class Bid(db.Model):
    __tablename__ = "vendor_responses"

    STATUSES = ["submitted", "accepted", "declined", "withdrawn"]

    # -- Statuses that count as a live offer --
    LIVE_STATUSES = ["submitted", "accepted"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    project_id = db.Column(
        db.String(36),
        db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    vendor_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=False, index=True
    )
    bid_amount = db.Column(db.Numeric(12, 2), nullable=False)
    proposed_timeline = db.Column(db.Text, nullable=False)
    response_notes = db.Column(db.Text, nullable=True)
    is_selected = db.Column(db.Boolean, default=False, nullable=False)
    status = db.Column(
        db.String(50), default="submitted", nullable=False
    )  # submitted | accepted | declined | withdrawn
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __table_args__ = (
        db.UniqueConstraint("project_id", "vendor_id", name="uq_bid_project_vendor"),
    )

    # --- Relationships ---
    project = db.relationship("Project", back_populates="bids")
    vendor = db.relationship("User")

    @property
    def is_live(self):
        return self.status in self.LIVE_STATUSES

    def to_dict(self, vendor_profile=None):
        data = {
            "id": self.id,
            "project_id": self.project_id,
            "vendor_id": self.vendor_id,
            "bid_amount": float(self.bid_amount) if self.bid_amount is not None else None,
            "proposed_timeline": self.proposed_timeline,
            "response_notes": self.response_notes,
            "is_selected": bool(self.is_selected),
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if vendor_profile is not None:
            data["vendor_profile"] = vendor_profile
        return data

    def __repr__(self):
        return f"<Bid project={self.project_id} vendor={self.vendor_id} ({self.status})>"
