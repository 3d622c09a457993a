"""
Custom route decorators for access control.

- role_required: ensures user is logged in AND holds one of the given roles.
- admin_required: role_required("admin").

Both answer JSON 403 rather than aborting to an HTML error page. Ownership
checks (is this *your* project?) live in services/access.py.
"""

from functools import wraps

from flask import jsonify
from flask_login import current_user, login_required


def role_required(*roles):
    """Require login + one of `roles` (business | vendor | admin)."""

    def decorator(f):
        @wraps(f)
        @login_required
        def decorated(*args, **kwargs):
            if current_user.role not in roles:
                return jsonify(ok=False, error="You do not have access to this resource."), 403
            return f(*args, **kwargs)

        return decorated

    return decorator


def admin_required(f):
    """Require login + admin role."""
    return role_required("admin")(f)
