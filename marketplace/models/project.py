"""Project model.

A business's posted request for vendor services. Status changes go
through lifecycle_service only; VALID_TRANSITIONS is the state machine
it enforces.

`details` holds the structured output of the intake chat. It is read and
written through ProjectDetails so callers only ever see the known fields.
"""

import uuid
from dataclasses import asdict, dataclass, fields
from typing import Optional

from marketplace.errors import ValidationError
from marketplace.extensions import db


@dataclass
class ProjectDetails:
    """Known intake fields. Unknown keys are dropped on load.

    employee_count is coerced to a non-negative int and urgency must be one
    of URGENCY_LEVELS; anything else raises ValidationError.
    """

    URGENCY_LEVELS = ("low", "normal", "high")

    business_size: Optional[str] = None  # "5-10" | "11-24" | "25-49" | "50-99" | "100+"
    employee_count: Optional[int] = None
    current_provider: Optional[str] = None
    decision_maker: Optional[str] = None
    urgency: Optional[str] = None
    additional_notes: Optional[str] = None

    def __post_init__(self):
        if self.employee_count is not None:
            self.employee_count = _non_negative_int(self.employee_count, "employee_count")
        if self.urgency is not None:
            urgency = str(self.urgency).strip().lower()
            if urgency not in self.URGENCY_LEVELS:
                raise ValidationError(
                    f"urgency must be one of: {', '.join(self.URGENCY_LEVELS)}."
                )
            self.urgency = urgency

    @classmethod
    def from_dict(cls, data):
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self):
        return {k: v for k, v in asdict(self).items() if v is not None}


def _non_negative_int(value, field_name):
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a whole number.")
    try:
        number = int(str(value).strip())
    except ValueError:
        raise ValidationError(f"{field_name} must be a whole number.")
    if number < 0:
        raise ValidationError(f"{field_name} cannot be negative.")
    return number


class Project(db.Model):
    __tablename__ = "projects"

    # -- Valid statuses --
    STATUSES = ["draft", "open", "in_review", "selected", "completed", "cancelled"]

    # -- Statuses in which vendors may still bid / be selected --
    ACTIONABLE_STATUSES = ["open", "in_review"]

    TERMINAL_STATUSES = ["completed", "cancelled"]

    # -- Valid status transitions (enforced in lifecycle_service) --
    # selected -> open / in_review only happens when the selected vendor declines.
    VALID_TRANSITIONS = {
        "draft": ["open", "cancelled"],
        "open": ["in_review", "selected", "cancelled"],
        "in_review": ["selected", "cancelled"],
        "selected": ["completed", "cancelled", "open", "in_review"],
    }

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    business_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=False, index=True
    )
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    service_category_id = db.Column(
        db.String(36), db.ForeignKey("service_categories.id"), nullable=False
    )

    # --- Budget / timeline ---
    budget_min = db.Column(db.Numeric(12, 2), nullable=True)
    budget_max = db.Column(db.Numeric(12, 2), nullable=True)
    timeline_start = db.Column(db.Date, nullable=True)
    timeline_end = db.Column(db.Date, nullable=True)

    # --- Location ---
    project_city = db.Column(db.String(100), nullable=True)
    project_state = db.Column(db.String(2), nullable=False)  # canonical 2-letter code
    project_zip = db.Column(db.String(10), nullable=True)

    special_requirements = db.Column(db.Text, nullable=True)
    details = db.Column(db.JSON, default=dict)

    # --- Lifecycle ---
    status = db.Column(
        db.String(50), default="draft", nullable=False, index=True
    )  # draft | open | in_review | selected | completed | cancelled
    selected_vendor_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=True
    )
    published_at = db.Column(db.DateTime(timezone=True), nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    business = db.relationship(
        "User", foreign_keys=[business_id], back_populates="projects"
    )
    selected_vendor = db.relationship("User", foreign_keys=[selected_vendor_id])
    service_category = db.relationship("ServiceCategory", lazy="joined")
    routings = db.relationship(
        "ProjectRouting", back_populates="project", passive_deletes=True
    )
    bids = db.relationship(
        "Bid", back_populates="project", passive_deletes=True
    )
    activities = db.relationship(
        "ProjectActivity",
        back_populates="project",
        passive_deletes=True,
        order_by="ProjectActivity.created_at",
    )

    @property
    def project_details(self):
        return ProjectDetails.from_dict(self.details)

    @project_details.setter
    def project_details(self, value):
        self.details = value.to_dict() if value is not None else {}

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    @property
    def is_actionable(self):
        return self.status in self.ACTIONABLE_STATUSES

    def to_dict(self):
        return {
            "id": self.id,
            "business_id": self.business_id,
            "title": self.title,
            "description": self.description,
            "service_category_id": self.service_category_id,
            "service_category": (
                self.service_category.name if self.service_category else None
            ),
            "budget_min": _money(self.budget_min),
            "budget_max": _money(self.budget_max),
            "timeline_start": _iso(self.timeline_start),
            "timeline_end": _iso(self.timeline_end),
            "project_city": self.project_city,
            "project_state": self.project_state,
            "project_zip": self.project_zip,
            "special_requirements": self.special_requirements,
            "details": self.project_details.to_dict(),
            "status": self.status,
            "selected_vendor_id": self.selected_vendor_id,
            "published_at": _iso(self.published_at),
            "completed_at": _iso(self.completed_at),
            "cancelled_at": _iso(self.cancelled_at),
            "created_at": _iso(self.created_at),
        }

    def __repr__(self):
        return f"<Project {self.title[:30]} ({self.status})>"


def _money(value):
    return float(value) if value is not None else None


def _iso(value):
    return value.isoformat() if value is not None else None
