"""Routing record — which vendors were offered which project.

One row per (project, vendor). Written by the routing pass (status
"routed") or by a vendor expressing interest ("interested"); advanced by
bid submission ("bid_submitted") and vendor decline ("declined").
"""

import uuid

from marketplace.extensions import db


class ProjectRouting(db.Model):
    __tablename__ = "project_routing"

    STATUSES = ["routed", "interested", "bid_submitted", "declined"]

    # -- Statuses that still let the vendor act on the lead --
    ACTIVE_STATUSES = ["routed", "interested", "bid_submitted"]

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
    status = db.Column(
        db.String(50), default="routed", nullable=False
    )  # routed | interested | bid_submitted | declined
    routed_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __table_args__ = (
        db.UniqueConstraint(
            "project_id", "vendor_id", name="uq_routing_project_vendor"
        ),
    )

    # --- Relationships ---
    project = db.relationship("Project", back_populates="routings")
    vendor = db.relationship("User")

    @property
    def is_active(self):
        return self.status in self.ACTIVE_STATUSES

    def to_dict(self, include_project=False):
        data = {
            "id": self.id,
            "project_id": self.project_id,
            "vendor_id": self.vendor_id,
            "status": self.status,
            "routed_at": self.routed_at.isoformat() if self.routed_at else None,
        }
        if include_project and self.project is not None:
            data["project"] = self.project.to_dict()
        return data

    def __repr__(self):
        return f"<ProjectRouting project={self.project_id} vendor={self.vendor_id} ({self.status})>"
