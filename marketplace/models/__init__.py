# Models package — import all models here so Alembic can discover them.

from marketplace.models.user import User  # noqa: F401
from marketplace.models.catalog import CoverageArea, ServiceCategory  # noqa: F401
from marketplace.models.vendor import (  # noqa: F401
    VendorProfile,
    vendor_coverage_areas,
    vendor_services,
)
from marketplace.models.project import Project, ProjectDetails  # noqa: F401
from marketplace.models.routing import ProjectRouting  # noqa: F401
from marketplace.models.bid import Bid  # noqa: F401
from marketplace.models.activity import ProjectActivity  # noqa: F401
