"""Tests for the hours dashboard and team drafting comparison."""

from services.allocation import compute_weekly_allocation
from services.hours import build_admin_breakdown, build_hours_dashboard, compute_drafting_misc


def _dashboard(rows):
    return build_hours_dashboard(rows, compute_weekly_allocation(rows))


def test_empty_dashboard():
    dashboard = _dashboard([])
    assert dashboard.metrics.total_hours == 0
    assert dashboard.metrics.total_days == 0
    assert dashboard.monthly == []
    assert dashboard.admin_breakdown == {
        "admin_total": 0,
        "billable_total": 0,
        "admin_pct": 0,
        "breakdown": [],
    }


def test_metrics_use_allocated_overtime(workweek_rows, make_entry):
    rows = workweek_rows + [
        make_entry(date="2025-06-07", start="09:00", end="12:00", hours=3, job="TEAM MEETINGS"),
    ]
    dashboard = _dashboard(rows)
    metrics = dashboard.metrics

    assert metrics.total_hours == 48
    assert metrics.straight_hours == 40
    assert metrics.overtime_hours == 8
    assert metrics.total_days == 6
    assert metrics.avg_hours_per_day == 8
    assert metrics.days_over_8 == 5
    assert metrics.weekend_days == 1

    assert dashboard.monthly == [{"month": "2025-06", "straight": 40, "overtime": 8, "days": 6}]
    assert dashboard.weekly_trend == [
        {"week_start": "2025-06-02", "days": 6, "total": 48, "straight": 40, "overtime": 8},
    ]


def test_histograms_and_distribution(workweek_rows, make_entry):
    rows = workweek_rows + [
        make_entry(date="2025-06-07", start="09:00", end="12:00", hours=3, job="TEAM MEETINGS"),
    ]
    dashboard = _dashboard(rows)

    assert dashboard.start_hours == [{"hour": 8, "count": 5}, {"hour": 9, "count": 1}]
    assert dashboard.end_hours == [{"hour": 12, "count": 1}, {"hour": 17, "count": 5}]
    buckets = {b["bucket"]: b["count"] for b in dashboard.daily_distribution}
    assert buckets["8-10h"] == 5
    assert buckets["0-4h"] == 1
    assert buckets["12h+"] == 0
    assert dashboard.top_jobs == [
        {"job": "ABC-25-001", "hours": 45},
        {"job": "TEAM MEETINGS", "hours": 3},
    ]
    assert dashboard.recent_days[-1] == {
        "date": "2025-06-07",
        "day_of_week": "Sat",
        "hours": 3,
        "jobs": ["TEAM MEETINGS"],
    }
    assert dashboard.calendar_days[0] == {"date": "2025-06-02", "hours": 9}


def test_first_start_and_last_end_per_day(make_entry):
    rows = [
        make_entry(start="1:00 PM", end="5:30 PM", hours=4.5),
        make_entry(start="7:15 AM", end="11:00 AM", hours=3.75),
    ]
    dashboard = _dashboard(rows)
    assert dashboard.start_hours == [{"hour": 7, "count": 1}]
    assert dashboard.end_hours == [{"hour": 17, "count": 1}]


def test_admin_breakdown(make_entry):
    rows = [
        make_entry(hours=6, job="ABC-25-001"),
        make_entry(hours=3, job="emails"),
        make_entry(hours=1, job="meeting"),
    ]
    breakdown = build_admin_breakdown(rows)
    assert breakdown["admin_total"] == 4
    assert breakdown["billable_total"] == 6
    assert breakdown["admin_pct"] == 40
    assert breakdown["breakdown"] == [
        {"code": "emails", "hours": 3, "pct": 30.0},
        {"code": "meeting", "hours": 1, "pct": 10.0},
    ]


def test_drafting_misc(make_entry):
    result = compute_drafting_misc({
        "Ann": [
            make_entry(hours=6, job="NCP-25-1001"),
            make_entry(hours=2, job="NCP-25-1002"),
            make_entry(hours=2, job="meeting"),
        ],
        "Bob": [
            make_entry(hours=4, job="NCP-25-1001"),
            make_entry(hours=3, job="ABC-25-001"),
        ],
    })

    ann, bob = result["employees"]
    assert ann == {
        "name": "Ann",
        "drafting_hours": 8,
        "misc_hours": 2,
        "ncp_job_count": 2,
        "avg_drafting_per_job": 4,
        "avg_misc_per_job": 1,
    }
    assert bob["misc_hours"] == 0
    assert result["total_drafting"] == 12
    assert result["unique_ncp_jobs"] == 2
    assert result["avg_drafting_per_job"] == 6
    assert result["misc_ratio"] == 14.3
    assert result["misc_per_drafting_hour"] == 0.167


def test_drafting_misc_without_jobs():
    result = compute_drafting_misc({})
    assert result["employees"] == []
    assert result["misc_ratio"] == 0.0
    assert result["avg_drafting_per_job"] == 0.0
