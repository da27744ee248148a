"""
tests/test_sla_analyzer.py

Pytest unit tests for the SLA performance analyzer.

All inputs are in-memory cleaned rows; ``now`` is pinned wherever the
created-date fallback is involved.

Coverage
--------
- Empty input
- Status classification (violation / compliant / unrecognized)
- Global bucket counts and percentage formatting
- Conservation and percentage bounds across a mixed dataset
- Candidate column fallback, defaults and falsy-but-present values
- Agent, category and priority breakdowns
- Time buckets (date, weekday, month) and undated tickets
- Insights: top performers, improvement areas, rankings, recommendations
"""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from analysis.sla import (
    SLAStatus,
    analyze_sla,
    classify_status,
    format_percentage,
    format_rate,
    parse_ticket_date,
    resolve_field,
)

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def _tickets(agent: str, count: int, violations: int) -> list[dict]:
    return [
        {
            "Agent": agent,
            "First Response Status": "Violated" if index < violations else "Met",
        }
        for index in range(count)
    ]


class TestEmptyInput:
    def test_returns_none(self) -> None:
        assert analyze_sla([]) is None


class TestClassification:
    @pytest.mark.parametrize(
        "text",
        ["Violated", "SLA Breach", "missed", "OVERDUE", "Failed"],
    )
    def test_violations(self, text) -> None:
        assert classify_status(text) is SLAStatus.VIOLATION

    @pytest.mark.parametrize("text", ["Within SLA", "Met", "compliant", "Achieved", "Success"])
    def test_compliant(self, text) -> None:
        assert classify_status(text) is SLAStatus.COMPLIANT

    @pytest.mark.parametrize("text", ["Pending", "n/a", "", 7])
    def test_unrecognized(self, text) -> None:
        assert classify_status(text) is SLAStatus.UNRECOGNIZED

    def test_violation_keywords_take_precedence(self) -> None:
        assert classify_status("Met after breach") is SLAStatus.VIOLATION


class TestGlobalBuckets:
    def test_two_rows_one_violation(self) -> None:
        analysis = analyze_sla(
            [
                {"Agent": "A", "First Response Status": "Violated"},
                {"Agent": "A", "First Response Status": "Met"},
            ],
            now=NOW,
        )
        bucket = analysis.to_dict()["firstResponseSLA"]

        assert bucket["total"] == 2
        assert bucket["violations"] == 1
        assert bucket["compliance"] == 1
        assert bucket["compliancePercentage"] == "50.0"
        assert bucket["violationPercentage"] == "50.0"

    def test_absent_columns_report_zero_strings(self) -> None:
        payload = analyze_sla([{"Agent": "A"}], now=NOW).to_dict()
        for key in ("firstResponseSLA", "resolutionSLA"):
            assert payload[key]["total"] == 0
            assert payload[key]["compliancePercentage"] == "0"
            assert payload[key]["violationPercentage"] == "0"

    def test_unrecognized_status_counts_towards_total_only(self) -> None:
        analysis = analyze_sla(
            [
                {"Resolution Status": "Pending"},
                {"Resolution Status": "Met"},
            ],
            now=NOW,
        )
        bucket = analysis.resolution
        assert (bucket.total, bucket.violations, bucket.compliance) == (2, 0, 1)
        assert bucket.to_dict()["compliancePercentage"] == "100.0"

    def test_format_percentage(self) -> None:
        assert format_percentage(1, 3) == "33.3"
        assert format_percentage(0, 0) == "0"
        assert format_percentage(2, 2) == "100.0"

    def test_format_rate_clamps_for_display(self) -> None:
        assert format_rate(-100.0) == "0.0"
        assert format_rate(92.04) == "92.0"
        assert format_rate(100.0) == "100.0"


class TestInvariants:
    @pytest.fixture()
    def mixed_rows(self) -> list[dict]:
        statuses = ["Violated", "Met", "Pending", "Within SLA", "Breach", None, "unknown"]
        return [
            {
                "Agent": f"Agent {index % 4}",
                "Category": ["Network", "Access", "Hardware"][index % 3],
                "Priority": ["High", "Low"][index % 2],
                "Created": f"2024-01-{(index % 28) + 1:02d}T09:00:00.000Z",
                "First Response Status": statuses[index % len(statuses)],
                "Resolution Status": statuses[(index + 3) % len(statuses)],
            }
            for index in range(60)
        ]

    def _buckets(self, payload: dict) -> list[dict]:
        buckets = [payload["firstResponseSLA"], payload["resolutionSLA"]]
        groups = list(payload["agents"].values()) + list(payload["categories"].values())
        groups += list(payload["priorities"].values())
        for section in ("byDate", "byWeekday", "byMonth"):
            groups += list(payload["timeAnalysis"][section].values())
        for group in groups:
            buckets.extend([group["firstResponseSLA"], group["resolutionSLA"]])
        return buckets

    def test_conservation(self, mixed_rows) -> None:
        payload = analyze_sla(mixed_rows, now=NOW).to_dict()
        for bucket in self._buckets(payload):
            assert bucket["violations"] + bucket["compliance"] <= bucket["total"]

    def test_percentage_bounds(self, mixed_rows) -> None:
        payload = analyze_sla(mixed_rows, now=NOW).to_dict()
        for bucket in self._buckets(payload):
            for key in ("compliancePercentage", "violationPercentage"):
                assert 0.0 <= float(bucket[key]) <= 100.0

    def test_agent_rates_stay_in_bounds_when_both_slas_breach(self) -> None:
        rows = [{"Agent": "A", "First Response Status": "Violated", "Resolution Status": "Violated"}]
        agent = analyze_sla(rows, now=NOW).to_dict()["agents"]["A"]
        assert agent["totalViolations"] == 2
        assert agent["complianceRate"] == "0.0"
        assert agent["violationRate"] == "100.0"

    def test_double_breaches_rank_below_single_breaches(self) -> None:
        rows = [
            {"Agent": "Avery", "First Response Status": "Violated", "Resolution Status": "Violated"},
            {"Agent": "Blake", "First Response Status": "Violated", "Resolution Status": "Met"},
        ]
        analysis = analyze_sla(rows, now=NOW)
        insights = analysis.to_dict()["insights"]

        assert [group["name"] for group in insights["topPerformers"]] == ["Blake", "Avery"]
        assert [group["complianceRate"] for group in insights["topPerformers"]] == ["0.0", "0.0"]
        assert analysis.insights.top_performers[1].compliance_rate == -100.0

    def test_output_is_json_serializable(self, mixed_rows) -> None:
        json.dumps(analyze_sla(mixed_rows, now=NOW).to_dict())


class TestFieldResolution:
    def test_candidate_order(self) -> None:
        row = {"Assignee": "Later", "Resolved by": "First"}
        resolved = resolve_field(row, ("Agent", "Resolved by", "Assignee"))
        assert resolved.column == "Resolved by"
        assert resolved.value == "First"

    def test_blank_values_are_skipped(self) -> None:
        row = {"Agent": "  ", "Resolved by": None, "Assignee": "C"}
        assert resolve_field(row, ("Agent", "Resolved by", "Assignee")).value == "C"

    @pytest.mark.parametrize("value", [0, False, "0"])
    def test_falsy_values_count_as_present(self, value) -> None:
        assert resolve_field({"Agent": value}, ("Agent",)).value == value

    def test_not_found_sentinel(self) -> None:
        assert resolve_field({"Other": "x"}, ("Agent",)) is None

    def test_defaults_without_agent_category_priority(self) -> None:
        analysis = analyze_sla([{"Subject": "VPN down"}], now=NOW)
        assert list(analysis.agents) == ["Unknown"]
        assert list(analysis.categories) == ["Unknown"]
        assert list(analysis.priorities) == ["Medium"]

    def test_numeric_agent_label(self) -> None:
        analysis = analyze_sla([{"Agent": 0}], now=NOW)
        assert list(analysis.agents) == ["0"]


class TestBreakdowns:
    def test_agent_category_priority_counts(self) -> None:
        rows = [
            {"Agent": "A", "Category": "Network", "Priority": "High", "First Response Status": "Violated"},
            {"Agent": "A", "Category": "Network", "Priority": "Low", "Resolution Status": "Breach"},
            {"Agent": "A", "Category": "Access", "Urgency": "High", "First Response Status": "Met"},
            {"Agent": "B", "Sub-Category": "Access", "First Response Status": "Met"},
        ]
        payload = analyze_sla(rows, now=NOW).to_dict()

        agent_a = payload["agents"]["A"]
        assert agent_a["total"] == 3
        assert agent_a["responseViolations"] == 1
        assert agent_a["resolutionViolations"] == 1
        assert agent_a["totalViolations"] == 2
        assert agent_a["complianceRate"] == "33.3"
        assert agent_a["topCategory"] == "Network"

        assert payload["categories"]["Access"]["total"] == 2
        assert payload["priorities"]["High"]["total"] == 2
        assert payload["priorities"]["Medium"]["total"] == 1


class TestTimeBuckets:
    def test_date_weekday_month_keys(self) -> None:
        rows = [
            {"Created": "2024-01-07T00:00:00.000Z", "First Response Status": "Violated"},
            {"Created Date": "2024-01-08T10:00:00.000Z", "First Response Status": "Met"},
        ]
        payload = analyze_sla(rows, now=NOW).to_dict()["timeAnalysis"]

        assert set(payload["byDate"]) == {"2024-01-07", "2024-01-08"}
        assert payload["byWeekday"]["0"]["name"] == "Sunday"
        assert payload["byWeekday"]["1"]["name"] == "Monday"
        assert payload["byMonth"]["2024-01"]["total"] == 2
        assert payload["byMonth"]["2024-01"]["firstResponseSLA"]["violations"] == 1

    def test_missing_date_column_uses_now(self) -> None:
        payload = analyze_sla([{"Agent": "A"}], now=NOW).to_dict()["timeAnalysis"]
        assert list(payload["byDate"]) == ["2024-03-15"]
        assert payload["byWeekday"]["5"]["name"] == "Friday"
        assert list(payload["byMonth"]) == ["2024-03"]
        assert payload["undatedTickets"] == 0

    def test_unparseable_date_is_counted_as_undated(self) -> None:
        payload = analyze_sla([{"Created": "sometime last week"}], now=NOW).to_dict()["timeAnalysis"]
        assert payload["byDate"] == {}
        assert payload["undatedTickets"] == 1

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("2024-01-07T00:00:00.000Z", datetime(2024, 1, 7)),
            ("2024-01-07T23:30:00+02:00", datetime(2024, 1, 7, 21, 30)),
            ("01/07/2024", datetime(2024, 1, 7)),
            ("2024/01/07", datetime(2024, 1, 7)),
            ("01/07/2024 08:15", datetime(2024, 1, 7, 8, 15)),
        ],
    )
    def test_parse_ticket_date(self, value, expected) -> None:
        assert parse_ticket_date(value) == expected

    def test_parse_ticket_date_rejects_non_dates(self) -> None:
        assert parse_ticket_date(20240107) is None
        assert parse_ticket_date("soon") is None


class TestInsights:
    @pytest.fixture()
    def ranked_rows(self) -> list[dict]:
        # 100%, 92% and 80% agent compliance.
        return _tickets("Alice", 10, 0) + _tickets("Bob", 25, 2) + _tickets("Cara", 5, 1)

    def test_improvement_areas_below_ninety(self, ranked_rows) -> None:
        insights = analyze_sla(ranked_rows, now=NOW).to_dict()["insights"]
        assert [group["name"] for group in insights["improvementAreas"]] == ["Cara"]
        assert insights["improvementAreas"][0]["complianceRate"] == "80.0"

    def test_top_performers_descending(self, ranked_rows) -> None:
        insights = analyze_sla(ranked_rows, now=NOW).to_dict()["insights"]
        assert [group["name"] for group in insights["topPerformers"]] == ["Alice", "Bob", "Cara"]
        assert [group["complianceRate"] for group in insights["topPerformers"]] == ["100.0", "92.0", "80.0"]

    def test_top_performers_capped_at_three(self) -> None:
        rows = []
        for name in ("A", "B", "C", "D"):
            rows += _tickets(name, 2, 0)
        insights = analyze_sla(rows, now=NOW).insights
        assert [group.name for group in insights.top_performers] == ["A", "B", "C"]

    def test_first_response_recommendation(self, ranked_rows) -> None:
        recommendations = analyze_sla(ranked_rows, now=NOW).insights.recommendations
        # 3 violations out of 40 tickets.
        assert any(text.startswith("First response SLA compliance is 92.5%") for text in recommendations)
        assert not any(text.startswith("Resolution SLA") for text in recommendations)
        # Spread is exactly 20 points, which does not exceed the threshold.
        assert not any(text.startswith("Agent compliance varies") for text in recommendations)

    def test_resolution_and_spread_recommendations(self) -> None:
        rows = [
            {"Agent": "A", "Resolution Status": "Met", "First Response Status": "Met"},
            {"Agent": "B", "Resolution Status": "Missed", "First Response Status": "Met"},
        ]
        recommendations = analyze_sla(rows, now=NOW).insights.recommendations
        assert any(text.startswith("Resolution SLA compliance is 50.0%") for text in recommendations)
        assert any(text.startswith("Agent compliance varies by 100.0") for text in recommendations)
        assert not any(text.startswith("First response") for text in recommendations)

    def test_no_recommendations_for_clean_data(self) -> None:
        rows = _tickets("A", 5, 0)
        assert analyze_sla(rows, now=NOW).insights.recommendations == []

    def test_category_ranking_ascending(self) -> None:
        rows = [
            {"Category": "Network", "First Response Status": "Violated"},
            {"Category": "Network", "First Response Status": "Met"},
            {"Category": "Access", "First Response Status": "Met"},
        ]
        ranking = analyze_sla(rows, now=NOW).insights.category_ranking
        assert [group.name for group in ranking] == ["Network", "Access"]

    def test_weekday_ranking_by_violation_rate(self) -> None:
        rows = [
            {"Created": "2024-01-07T00:00:00.000Z", "First Response Status": "Met"},
            {"Created": "2024-01-08T00:00:00.000Z", "First Response Status": "Violated"},
        ]
        ranking = analyze_sla(rows, now=NOW).insights.weekday_ranking
        assert [group.name for group in ranking] == ["Monday", "Sunday"]
