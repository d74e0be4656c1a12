"""Effective story points of an issue, taking estimate edits into account."""

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

from log_config import log_manager
from utils.jira.error import JiraFieldLookupError

_logger = log_manager.get_logger("StoryPoints")


@dataclass(frozen=True)
class EffortField:
    """
    The story points field, identified once at configuration time.

    History entries are matched on ``fieldId`` when Jira provides it and on the
    display name otherwise (older Jira Server changelogs only carry the name).
    """

    field_id: str
    display_name: str

    def matches(self, history_item: Dict) -> bool:
        item_field_id = history_item.get("fieldId")
        if item_field_id:
            return item_field_id == self.field_id
        return history_item.get("field") == self.display_name


def resolve_effort_field(catalogue: Sequence[Dict], id_or_name: str) -> EffortField:
    """
    Look up a field by id (``customfield_10005``) or display name (``Story Points``).

    Args:
        catalogue: Field records as returned by Jira's field endpoint.
        id_or_name: The configured identifier.

    Raises:
        JiraFieldLookupError: If no field matches.
    """
    for field in catalogue:
        if field.get("id") == id_or_name:
            return EffortField(field_id=field["id"], display_name=field.get("name") or id_or_name)
    lowered = id_or_name.strip().lower()
    for field in catalogue:
        if (field.get("name") or "").strip().lower() == lowered:
            return EffortField(field_id=field["id"], display_name=field["name"])
    raise JiraFieldLookupError(f"No Jira field named or identified by '{id_or_name}'", field=id_or_name)


def coerce_points(value: Any) -> Optional[int]:
    """
    Coerce a raw field value to a non-negative whole number of points.

    Fractions are truncated (``"3.5"`` -> 3). Missing, non-numeric, negative and
    non-finite values return None so callers can leave them out.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if math.isnan(number) or math.isinf(number) or number < 0:
        return None
    return int(number)


def historical_point_values(histories: Iterable[Dict], effort_field: EffortField) -> List[Any]:
    """Every raw "changed to" value of the effort field across the change history, in order."""
    values: List[Any] = []
    for history in histories:
        for item in history.get("items") or []:
            if not effort_field.matches(item):
                continue
            values.append(item.get("toString") if item.get("toString") is not None else item.get("to"))
    return values


def collect_point_values(
    current_value: Any, histories: Iterable[Dict], effort_field: EffortField, issue_key: str = ""
) -> List[int]:
    """
    Current value plus every historical value, coerced; unusable values are dropped.
    """
    collected: List[int] = []
    for raw in [current_value, *historical_point_values(histories, effort_field)]:
        points = coerce_points(raw)
        if points is None:
            if raw is not None:
                _logger.debug(f"Ignoring non-numeric story points value {raw!r} on {issue_key or 'issue'}")
            continue
        collected.append(points)
    return collected


def resolve_story_points(
    current_value: Any,
    histories: Iterable[Dict],
    effort_field: EffortField,
    burndown: bool,
    issue_key: str = "",
) -> int:
    """
    Effective story points of an issue.

    With ``burndown`` the largest estimate the issue ever carried is credited,
    since the team lowers estimates as work progresses. Otherwise only the
    current value counts. Nothing usable resolves to 0.
    """
    if not burndown:
        return coerce_points(current_value) or 0

    values = collect_point_values(current_value, histories, effort_field, issue_key)
    return max(values) if values else 0


class StoryPointsResolver:
    """
    Resolves story points for raw search issues, fetching change history when needed.

    Args:
        gateway: Object exposing ``fetch_issue_history(issue, fields)``.
        effort_field (EffortField): The story points field.
        burndown (bool): Credit the maximum historical estimate instead of the current one.
    """

    def __init__(self, gateway, effort_field: EffortField, burndown: bool):
        self.gateway = gateway
        self.effort_field = effort_field
        self.burndown = burndown

    def resolve(self, issue: Dict) -> int:
        """
        Effective points of one raw issue.

        Raises:
            JiraIssueHistoryError: If the change history cannot be fetched.
        """
        fields = issue.get("fields") or {}
        if not self.burndown:
            return resolve_story_points(fields.get(self.effort_field.field_id), [], self.effort_field, False)

        history_fields, histories = self.gateway.fetch_issue_history(issue, fields=[self.effort_field.field_id])
        current_value = (history_fields or {}).get(self.effort_field.field_id)
        return resolve_story_points(
            current_value, histories, self.effort_field, True, issue_key=issue.get("key", "")
        )

    def resolve_all(self, issues: Sequence[Dict]) -> Dict[str, int]:
        """Map of issue key to effective points for every issue."""
        return {issue.get("key"): self.resolve(issue) for issue in issues}
