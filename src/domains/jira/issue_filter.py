"""Optional post-retrieval filtering on issue type, labels and project."""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional

CLASSIFICATION_FIELDS = ("issuetype", "labels", "project")


def _split(value: Optional[str]) -> FrozenSet[str]:
    if not value:
        return frozenset()
    return frozenset(part.strip() for part in value.split(",") if part.strip())


@dataclass(frozen=True)
class IssueFilter:
    """
    Keeps issues matching every configured criterion. An empty filter keeps everything.

    Issue types and labels compare case-insensitively; projects match on key or name.
    """

    exclude_issue_types: FrozenSet[str] = field(default_factory=frozenset)
    include_labels: FrozenSet[str] = field(default_factory=frozenset)
    exclude_labels: FrozenSet[str] = field(default_factory=frozenset)
    projects: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_strings(
        cls,
        exclude_issue_types: Optional[str] = None,
        include_labels: Optional[str] = None,
        exclude_labels: Optional[str] = None,
        projects: Optional[str] = None,
    ) -> "IssueFilter":
        """Build a filter from comma-separated CLI values."""
        return cls(
            exclude_issue_types=frozenset(v.lower() for v in _split(exclude_issue_types)),
            include_labels=frozenset(v.lower() for v in _split(include_labels)),
            exclude_labels=frozenset(v.lower() for v in _split(exclude_labels)),
            projects=_split(projects),
        )

    @property
    def is_empty(self) -> bool:
        return not (self.exclude_issue_types or self.include_labels or self.exclude_labels or self.projects)

    def matches(self, issue: Dict) -> bool:
        fields = issue.get("fields") or {}

        issue_type = ((fields.get("issuetype") or {}).get("name") or "").lower()
        if issue_type and issue_type in self.exclude_issue_types:
            return False

        labels = {label.lower() for label in fields.get("labels") or []}
        if self.include_labels and not labels & self.include_labels:
            return False
        if labels & self.exclude_labels:
            return False

        if self.projects:
            project = fields.get("project") or {}
            if project.get("key") not in self.projects and project.get("name") not in self.projects:
                return False
        return True

    def apply(self, issues: Iterable[Dict]) -> List[Dict]:
        if self.is_empty:
            return list(issues)
        return [issue for issue in issues if self.matches(issue)]
