"""Matcher — decides whether a vendor should receive a project as a lead.

Two mandatory criteria, checked in this order:
  1. Service match  — vendor offers the project's service category (exact id)
  2. Location match — project state is among the vendor's coverage states

The service check is free (capabilities are already loaded); the location
check goes through the CoverageResolver and may hit the database, so it is
skipped whenever the service check fails.

Approval is not a match criterion. The routing pass only feeds approved
vendors in; an unapproved vendor passed directly gets no-match with no
resolver call.

The score (points per satisfied criterion) is informational and is only
logged and returned to admins.
"""

from dataclasses import dataclass, field

from marketplace.services.coverage_resolver import normalize_state

DEFAULT_POINTS_PER_CRITERION = 50

SERVICE_MATCH = "Service match"
LOCATION_MATCH = "Location match"


@dataclass
class MatchResult:
    is_match: bool
    reasons: list = field(default_factory=list)
    score: int = 0

    def to_dict(self):
        return {"is_match": self.is_match, "reasons": list(self.reasons), "score": self.score}


def match(project, vendor, resolver, points=DEFAULT_POINTS_PER_CRITERION):
    """Match one project against one vendor profile.

    Args:
        project: Project (uses service_category_id, project_state).
        vendor: VendorProfile (uses is_approved, service_ids, coverage_area_ids).
        resolver: CoverageResolver used for the location check.
        points: Score added per satisfied criterion.

    Returns:
        MatchResult. is_match is True only when both criteria hold.
    """
    result = MatchResult(is_match=False)

    if not vendor.is_approved:
        return result

    if not project.service_category_id or project.service_category_id not in vendor.service_ids:
        return result
    result.reasons.append(SERVICE_MATCH)
    result.score += points

    project_state = normalize_state(project.project_state)
    if project_state is None:
        return result

    covered = resolver.resolve(vendor.coverage_area_ids)
    if project_state not in covered:
        return result
    result.reasons.append(LOCATION_MATCH)
    result.score += points

    result.is_match = True
    return result
