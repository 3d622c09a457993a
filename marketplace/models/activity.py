"""Project activity model.

Append-only audit trail of lifecycle and routing events. Rows are only
removed when their project is deleted.
"""

import uuid

from marketplace.extensions import db


class ProjectActivity(db.Model):
    __tablename__ = "project_activity"

    ACTIONS = [
        "created",
        "published",
        "routed",
        "routing_failed",
        "interest_expressed",
        "bid_submitted",
        "bid_updated",
        "in_review",
        "vendor_selected",
        "completed",
        "declined",
        "cancelled",
    ]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    project_id = db.Column(
        db.String(36),
        db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    actor_user_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=True
    )  # null = system-originated
    action = db.Column(db.String(100), nullable=False)
    details = db.Column(db.JSON, default=dict)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    # --- Relationships ---
    project = db.relationship("Project", back_populates="activities")
    actor = db.relationship("User", lazy="joined")

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "actor_user_id": self.actor_user_id,
            "action": self.action,
            "details": self.details or {},
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<ProjectActivity {self.action} on {self.project_id}>"
