"""Acting-identity checks shared by the services.

Every inbound operation receives the acting user's id. These helpers load
that user and answer "may they touch this row?" before anything is
mutated. Route decorators (decorators.py) handle the coarse role gates;
this module handles ownership.
"""

from marketplace.errors import AuthorizationError, NotFoundError
from marketplace.models.project import Project
from marketplace.models.user import User


def load_actor(store, acting_user_id):
    """Return the active User behind acting_user_id or raise AuthorizationError."""
    if not acting_user_id:
        raise AuthorizationError("An acting user is required.")
    user = store.get(User, acting_user_id)
    if user is None or not user.is_active:
        raise AuthorizationError("Unknown or deactivated user.")
    return user


def load_project(store, project_id):
    project = store.get(Project, project_id)
    if project is None:
        raise NotFoundError(f"Project {project_id} not found.")
    return project


def is_owner_or_admin(user, project):
    return user.is_admin or project.business_id == user.id


def require_owner_or_admin(user, project, action="modify"):
    if not is_owner_or_admin(user, project):
        raise AuthorizationError(f"Not authorized to {action} this project.")


def require_self_or_admin(user, target_user_id, what="resource"):
    if not (user.is_admin or user.id == target_user_id):
        raise AuthorizationError(f"Not authorized to access this {what}.")


def require_admin(user):
    if not user.is_admin:
        raise AuthorizationError("Admin access required.")
