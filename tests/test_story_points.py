import pytest

from conftest import STORY_POINTS, make_issue, points_history
from domains.jira.story_points import (
    EffortField,
    StoryPointsResolver,
    coerce_points,
    resolve_effort_field,
    resolve_story_points,
)
from utils.jira.error import JiraFieldLookupError


def test_burndown_credits_the_largest_estimate(effort_field):
    assert resolve_story_points(3, points_history(5, 8, 3), effort_field, burndown=True) == 8


def test_without_burndown_only_the_current_value_counts(effort_field):
    assert resolve_story_points(3, points_history(5, 8, 3), effort_field, burndown=False) == 3


def test_no_history_and_no_value_resolves_to_zero(effort_field):
    assert resolve_story_points(None, [], effort_field, burndown=True) == 0
    assert resolve_story_points(None, [], effort_field, burndown=False) == 0


def test_history_matched_by_display_name_when_field_id_missing(effort_field):
    histories = [{"items": [{"field": "Story Points", "toString": "13"}, {"field": "status", "toString": "Done"}]}]
    assert resolve_story_points(2, histories, effort_field, burndown=True) == 13


def test_other_fields_in_history_are_ignored(effort_field):
    histories = [{"items": [{"field": "Sprint", "fieldId": "customfield_10007", "toString": "42"}]}]
    assert resolve_story_points(1, histories, effort_field, burndown=True) == 1


def test_unusable_history_values_are_dropped(effort_field):
    histories = [{"items": [{"fieldId": STORY_POINTS, "toString": "large"}]}, *points_history(-4, 2)]
    assert resolve_story_points(None, histories, effort_field, burndown=True) == 2


@pytest.mark.parametrize(
    "raw, expected",
    [(5, 5), ("8", 8), (3.9, 3), ("2.5", 2), (None, None), ("", None), ("n/a", None), (-1, None), (True, None)],
)
def test_coerce_points(raw, expected):
    assert coerce_points(raw) == expected


def test_resolve_effort_field_by_id_or_name():
    catalogue = [{"id": "summary", "name": "Summary"}, {"id": "customfield_10106", "name": "Story Points"}]
    assert resolve_effort_field(catalogue, "customfield_10106") == EffortField("customfield_10106", "Story Points")
    assert resolve_effort_field(catalogue, "story points").field_id == "customfield_10106"
    with pytest.raises(JiraFieldLookupError):
        resolve_effort_field(catalogue, "Effort")


def test_resolver_skips_history_without_burndown(fake_gateway_factory, effort_field):
    gateway = fake_gateway_factory()
    resolver = StoryPointsResolver(gateway, effort_field, burndown=False)

    assert resolver.resolve_all([make_issue("ENG-1", 3), make_issue("ENG-2", None)]) == {"ENG-1": 3, "ENG-2": 0}
    assert gateway.history_calls == []


def test_resolver_reads_history_with_burndown(fake_gateway_factory, effort_field):
    gateway = fake_gateway_factory(histories={"ENG-1": ({STORY_POINTS: 3}, points_history(5, 8, 3))})
    resolver = StoryPointsResolver(gateway, effort_field, burndown=True)

    assert resolver.resolve(make_issue("ENG-1", 3)) == 8
    assert gateway.history_calls == ["ENG-1"]
