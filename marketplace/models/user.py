"""User model.

Stores authentication credentials and the marketplace role.
Flask-Login integration via UserMixin.
"""

import uuid

from flask_login import UserMixin

from marketplace.extensions import db


class User(UserMixin, db.Model):
    __tablename__ = "users"

    ROLES = ["business", "vendor", "admin"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(255))
    role = db.Column(
        db.String(50), nullable=False, default="business"
    )  # business | vendor | admin
    company_name = db.Column(db.String(255))
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    vendor_profile = db.relationship(
        "VendorProfile", back_populates="user", uselist=False
    )
    projects = db.relationship(
        "Project",
        foreign_keys="Project.business_id",
        back_populates="business",
        lazy="dynamic",
    )

    @property
    def is_admin(self):
        return self.role == "admin"

    @property
    def is_vendor(self):
        return self.role == "vendor"

    @property
    def is_business(self):
        return self.role == "business"

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "company_name": self.company_name,
        }

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"
