"""
Timesheet irregularity detection.

Each rule is a plain function taking a RuleContext and returning a list of
Flags. Rules never see each other's output: detect_irregularities runs them
in order, then deduplicates on (category, date, detail) and sorts by
severity rank and date. Summary counts are taken from the final flag list.

Rules must not raise on malformed rows. The only exception allowed to
escape is one raised by the job registry lookup.
"""

import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from functools import cached_property
from types import MappingProxyType
from typing import Callable, Collection, Iterable, Mapping, Sequence

from core.config import (
    DRIVING_CODE,
    EARLY_START_MINUTES,
    HIGH_ADMIN_DAY_MIN_HOURS,
    HIGH_ADMIN_DAY_SHARE,
    HOURS_MISMATCH_HIGH,
    HOURS_MISMATCH_TOLERANCE,
    IDENTICAL_RUN_DAYS,
    IDENTICAL_TOLERANCE_HOURS,
    JOB_CODE_PATTERN,
    LATE_END_MINUTES,
    LONG_DAY_HOURS,
    PERMIT_CODES,
    PREP_CODES,
    PREP_DAY_LIMIT_HOURS,
    STREAK_LIMIT_DAYS,
)
from core.normalize import normalize_date, parse_iso_date, time_to_minutes
from models.timesheet import (
    SUMMARY_DATE,
    Flag,
    FraudReport,
    FraudSummary,
    TimeEntry,
)
from services.days import day_total, group_by_date, is_weekend

JobLookup = Callable[[list[str]], Iterable[str]]

CATEGORY_FUTURE_DATE = "Future Date"
CATEGORY_DUPLICATE = "Duplicate Entry"
CATEGORY_OVERLAP = "Overlapping Entries"
CATEGORY_MISMATCH = "Hours Mismatch"
CATEGORY_LONG_DAY = "Extremely Long Day"
CATEGORY_UNUSUAL_HOURS = "Unusual Hours"
CATEGORY_WEEKEND = "Weekend Work"
CATEGORY_STREAK = "Long Work Streak"
CATEGORY_IDENTICAL = "Identical Daily Hours"
CATEGORY_ZERO_HOURS = "Zero Hours With Time"
CATEGORY_HIGH_ADMIN = "High Admin Day"
CATEGORY_PREP = "Excessive Prep Work"
CATEGORY_DRIVING = "Driving Billed"
CATEGORY_FRAGMENTATION = "Admin Code Fragmentation"
CATEGORY_UNRECOGNIZED = "Unrecognized Job Code"


@dataclass(frozen=True)
class DetectorSettings:
    """Thresholds for the rule catalogue. Defaults come from core.config."""

    mismatch_tolerance_hours: float = HOURS_MISMATCH_TOLERANCE
    mismatch_high_hours: float = HOURS_MISMATCH_HIGH
    long_day_hours: float = LONG_DAY_HOURS
    early_start_minutes: int = EARLY_START_MINUTES
    late_end_minutes: int = LATE_END_MINUTES
    streak_limit_days: int = STREAK_LIMIT_DAYS
    identical_run_days: int = IDENTICAL_RUN_DAYS
    identical_tolerance_hours: float = IDENTICAL_TOLERANCE_HOURS
    admin_day_min_hours: float = HIGH_ADMIN_DAY_MIN_HOURS
    admin_day_share: float = HIGH_ADMIN_DAY_SHARE
    prep_day_limit_hours: float = PREP_DAY_LIMIT_HOURS
    prep_codes: frozenset[str] = PREP_CODES
    permit_codes: frozenset[str] = PERMIT_CODES
    driving_code: str = DRIVING_CODE
    job_code_pattern: str = JOB_CODE_PATTERN


@dataclass
class RuleContext:
    """Everything a rule may read. Built once per analysis."""

    by_date: Mapping[str, tuple[TimeEntry, ...]]
    today: str
    admin_codes: frozenset[str]
    job_lookup: JobLookup
    settings: DetectorSettings

    @cached_property
    def rows(self) -> tuple[TimeEntry, ...]:
        return tuple(row for day_rows in self.by_date.values() for row in day_rows)

    @cached_property
    def sorted_dates(self) -> list[str]:
        return sorted(self.by_date)

    @cached_property
    def day_totals(self) -> dict[str, float]:
        return {day: day_total(rows) for day, rows in self.by_date.items()}

    @cached_property
    def streaks(self) -> list[tuple[str, int, str]]:
        """(date, day number within run, run start) for each worked YYYY-MM-DD date."""
        result = []
        previous: date | None = None
        length = 0
        run_start = ""
        for day in self.sorted_dates:
            parsed = parse_iso_date(day)
            if parsed is None:
                continue
            if previous is not None and (parsed - previous).days == 1:
                length += 1
            else:
                length = 1
                run_start = day
            result.append((day, length, run_start))
            previous = parsed
        return result

    @cached_property
    def total_hours(self) -> float:
        return sum(row.reported_hours for row in self.rows)

    @cached_property
    def admin_hours(self) -> float:
        return sum(row.reported_hours for row in self.rows if self.is_admin(row))

    @cached_property
    def admin_pct(self) -> int:
        if self.total_hours <= 0:
            return 0
        return math.floor(self.admin_hours / self.total_hours * 100 + 0.5)

    @cached_property
    def structured_codes(self) -> list[str]:
        pattern = re.compile(self.settings.job_code_pattern)
        return sorted({
            row.job_code for row in self.rows
            if row.job_code and pattern.fullmatch(row.job_code)
        })

    @cached_property
    def unrecognized_codes(self) -> list[str]:
        codes = self.structured_codes
        if not codes:
            return []
        existing = set(self.job_lookup(list(codes)))
        return [code for code in codes if code not in existing]

    def is_admin(self, row: TimeEntry) -> bool:
        return bool(row.job_code) and row.job_code in self.admin_codes


Rule = Callable[[RuleContext], list[Flag]]


# =============================================================================
# FORMATTING
# =============================================================================


def _show(value) -> str:
    return str(value) if value not in (None, "") else "—"


def _num(value: float) -> str:
    """Format hours without trailing zeros (7.0 -> '7', 7.50 -> '7.5')."""
    text = f"{value:.2f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def _clock_label(minutes: int) -> str:
    """Minutes since midnight as '5:00 AM' / '11:00 PM'."""
    hour, minute = divmod(minutes, 60)
    period = "AM" if hour < 12 else "PM"
    return f"{hour % 12 or 12}:{minute:02d} {period}"


# =============================================================================
# RULES
# =============================================================================


def flag_future_dates(ctx: RuleContext) -> list[Flag]:
    """Rows dated after the reference day. Opaque dates are never compared."""
    return [
        Flag("high", CATEGORY_FUTURE_DATE, day,
             f"Entry dated {day} is in the future (today is {ctx.today}).")
        for day in ctx.sorted_dates
        if parse_iso_date(day) is not None and day > ctx.today
    ]


def flag_duplicates(ctx: RuleContext) -> list[Flag]:
    """Second and later rows sharing start, end and job on one date."""
    flags = []
    for day, rows in ctx.by_date.items():
        seen = set()
        for row in rows:
            key = (row.start, row.end, row.job_code)
            if key in seen:
                flags.append(Flag(
                    "high", CATEGORY_DUPLICATE, day,
                    f"Duplicate row: start={_show(row.start)} end={_show(row.end)} "
                    f"job={_show(row.job_code)}",
                ))
            seen.add(key)
    return flags


def flag_overlaps(ctx: RuleContext) -> list[Flag]:
    """Every pair of same-day clock intervals that intersect."""
    flags = []
    for day, rows in ctx.by_date.items():
        intervals = []
        for row in rows:
            start = time_to_minutes(row.start)
            end = time_to_minutes(row.end)
            if start is not None and end is not None and end > start:
                intervals.append((start, end, row))

        for i, (a_start, a_end, a) in enumerate(intervals):
            for b_start, b_end, b in intervals[i + 1:]:
                overlap = min(a_end, b_end) - max(a_start, b_start)
                if overlap > 0:
                    flags.append(Flag(
                        "high", CATEGORY_OVERLAP, day,
                        f"{a.start}–{a.end} ({_show(a.job_code)}) overlaps "
                        f"{b.start}–{b.end} ({_show(b.job_code)}) by {overlap} min.",
                    ))
    return flags


def flag_hours_mismatch(ctx: RuleContext) -> list[Flag]:
    """Reported hours that disagree with the clock-in/out span."""
    settings = ctx.settings
    flags = []
    for day, rows in ctx.by_date.items():
        for row in rows:
            start = time_to_minutes(row.start)
            end = time_to_minutes(row.end)
            if start is None or end is None or end <= start:
                continue
            reported = row.reported_hours
            if reported == 0:
                continue
            clock = (end - start) / 60
            diff = abs(clock - reported)
            if diff > settings.mismatch_tolerance_hours:
                flags.append(Flag(
                    "high" if diff > settings.mismatch_high_hours else "medium",
                    CATEGORY_MISMATCH, day,
                    f"{row.start}–{row.end} = {clock:.2f}h on clock, but {_num(reported)}h "
                    f"reported (diff {diff:.2f}h). Job: {_show(row.job_code)}",
                ))
    return flags


def flag_long_days(ctx: RuleContext) -> list[Flag]:
    return [
        Flag("medium", CATEGORY_LONG_DAY, day, f"{total:.2f}h reported in a single day.")
        for day, total in ctx.day_totals.items()
        if total > ctx.settings.long_day_hours
    ]


def flag_unusual_hours(ctx: RuleContext) -> list[Flag]:
    """Very early starts and very late ends, one flag per offending time."""
    settings = ctx.settings
    early = _clock_label(settings.early_start_minutes)
    late = _clock_label(settings.late_end_minutes)
    flags = []
    for day, rows in ctx.by_date.items():
        for row in rows:
            start = time_to_minutes(row.start)
            end = time_to_minutes(row.end)
            if start is not None and start < settings.early_start_minutes:
                flags.append(Flag(
                    "low", CATEGORY_UNUSUAL_HOURS, day,
                    f"Start time {row.start} is before {early}. Job: {_show(row.job_code)}",
                ))
            if end is not None and end >= settings.late_end_minutes:
                flags.append(Flag(
                    "low", CATEGORY_UNUSUAL_HOURS, day,
                    f"End time {row.end} is at or after {late}. Job: {_show(row.job_code)}",
                ))
    return flags


def flag_weekend_work(ctx: RuleContext) -> list[Flag]:
    flags = []
    for day in ctx.sorted_dates:
        parsed = parse_iso_date(day)
        if parsed is None or not is_weekend(parsed):
            continue
        weekday = "Sunday" if parsed.weekday() == 6 else "Saturday"
        flags.append(Flag(
            "low", CATEGORY_WEEKEND, day,
            f"Worked {ctx.day_totals[day]:.2f}h on a {weekday}.",
        ))
    return flags


def flag_long_streaks(ctx: RuleContext) -> list[Flag]:
    """Each day past the streak limit in a run of consecutive worked dates."""
    return [
        Flag("medium", CATEGORY_STREAK, day,
             f"Day {length} of consecutive work starting {run_start}. "
             f"No day off in {length} days.")
        for day, length, run_start in ctx.streaks
        if length > ctx.settings.streak_limit_days
    ]


def flag_identical_daily_hours(ctx: RuleContext) -> list[Flag]:
    """Runs of worked dates (in sort order) reporting the same total."""
    settings = ctx.settings
    dates = ctx.sorted_dates
    flags = []
    run = 1
    for i in range(1, len(dates)):
        total = ctx.day_totals[dates[i]]
        if abs(total - ctx.day_totals[dates[i - 1]]) < settings.identical_tolerance_hours:
            run += 1
            if run >= settings.identical_run_days:
                flags.append(Flag(
                    "low", CATEGORY_IDENTICAL, dates[i],
                    f"Exactly {_num(total)}h reported for {run} consecutive days "
                    f"(since {dates[i - run + 1]}).",
                ))
        else:
            run = 1
    return flags


def flag_zero_hours_with_time(ctx: RuleContext) -> list[Flag]:
    flags = []
    for day, rows in ctx.by_date.items():
        for row in rows:
            if row.reported_hours == 0 and (row.start or row.end):
                flags.append(Flag(
                    "medium", CATEGORY_ZERO_HOURS, day,
                    f"Entry has start={_show(row.start)} end={_show(row.end)} but 0 hours "
                    f"reported. Job: {_show(row.job_code)}",
                ))
    return flags


def flag_high_admin_days(ctx: RuleContext) -> list[Flag]:
    """Days of at least the minimum length spent mostly on admin codes."""
    settings = ctx.settings
    flags = []
    for day, rows in ctx.by_date.items():
        total = ctx.day_totals[day]
        if total < settings.admin_day_min_hours or total <= 0:
            continue
        admin = sum(row.reported_hours for row in rows if ctx.is_admin(row))
        share = admin / total
        if share < settings.admin_day_share:
            continue
        full = math.isclose(share, 1.0)
        remainder = (
            "no project work recorded."
            if full
            else f"only {total - admin:.2f}h of project work recorded."
        )
        flags.append(Flag(
            "medium" if full else "low", CATEGORY_HIGH_ADMIN, day,
            f"{share * 100:.0f}% of {total:.2f}h ({admin:.2f}h) coded to non-billable admin, "
            f"{remainder}",
        ))
    return flags


def flag_excessive_prep(ctx: RuleContext) -> list[Flag]:
    settings = ctx.settings
    codes = " / ".join(sorted(settings.prep_codes))
    flags = []
    for day, rows in ctx.by_date.items():
        prep = sum(row.reported_hours for row in rows if row.job_code in settings.prep_codes)
        if prep > settings.prep_day_limit_hours:
            flags.append(Flag(
                "medium", CATEGORY_PREP, day,
                f"{prep:.2f}h billed to {codes} in a single day; no specific project attached.",
            ))
    return flags


def flag_driving(ctx: RuleContext) -> list[Flag]:
    code = ctx.settings.driving_code
    return [
        Flag("low", CATEGORY_DRIVING, day,
             f'{row.reported_hours:.2f}h billed under "{code}" code. '
             f"Verify drive time is a compensable category per policy.")
        for day, rows in ctx.by_date.items()
        for row in rows
        if row.job_code == code
    ]


def flag_admin_fragmentation(ctx: RuleContext) -> list[Flag]:
    """One summary flag on admin share and near-duplicate admin code names."""
    if not ctx.rows:
        return []
    settings = ctx.settings
    prep_total = sum(r.reported_hours for r in ctx.rows if r.job_code in settings.prep_codes)
    permit_total = sum(r.reported_hours for r in ctx.rows if r.job_code in settings.permit_codes)
    prep_names = " + ".join(f'"{code}"' for code in sorted(settings.prep_codes))
    return [Flag(
        "medium", CATEGORY_FRAGMENTATION, SUMMARY_DATE,
        f"{ctx.admin_pct}% of all hours ({ctx.admin_hours:.0f}h / {ctx.total_hours:.0f}h) "
        f"are on non-billable admin codes. Prep-type codes split across {prep_names} = "
        f"{prep_total:.0f}h. Permit-type codes split across {len(settings.permit_codes)} "
        f"variations = {permit_total:.0f}h. Fragmented naming obscures total exposure.",
    )]


def flag_unrecognized_job_codes(ctx: RuleContext) -> list[Flag]:
    """Structured-looking job codes missing from the job registry."""
    flags = []
    for code in ctx.unrecognized_codes:
        hours = sum(row.reported_hours for row in ctx.rows if row.job_code == code)
        flags.append(Flag(
            "high", CATEGORY_UNRECOGNIZED, SUMMARY_DATE,
            f'"{code}" looks like a structured job number but does not exist in the '
            f"jobs database. {hours:.2f}h billed against it.",
        ))
    return flags


RULES: tuple[Rule, ...] = (
    flag_future_dates,
    flag_duplicates,
    flag_overlaps,
    flag_hours_mismatch,
    flag_long_days,
    flag_unusual_hours,
    flag_weekend_work,
    flag_long_streaks,
    flag_identical_daily_hours,
    flag_zero_hours_with_time,
    flag_high_admin_days,
    flag_excessive_prep,
    flag_driving,
    flag_admin_fragmentation,
    flag_unrecognized_job_codes,
)


# =============================================================================
# ASSEMBLY
# =============================================================================


def deduplicate_flags(flags: Iterable[Flag]) -> list[Flag]:
    """Drop flags repeating an earlier (category, date, detail), keeping the first."""
    seen = set()
    result = []
    for flag in flags:
        if flag.key in seen:
            continue
        seen.add(flag.key)
        result.append(flag)
    return result


def sort_flags(flags: Iterable[Flag]) -> list[Flag]:
    """
    Severity rank (high first), then date string ascending. Stable.

    Row-set summary flags lead their severity group.
    """
    return sorted(flags, key=lambda f: (f.severity_rank, f.date != SUMMARY_DATE, f.date))


def summarize(flags: list[Flag], ctx: RuleContext) -> FraudSummary:
    def count(category: str) -> int:
        return sum(1 for f in flags if f.category == category)

    return FraudSummary(
        high=sum(1 for f in flags if f.severity == "high"),
        medium=sum(1 for f in flags if f.severity == "medium"),
        low=sum(1 for f in flags if f.severity == "low"),
        duplicates=count(CATEGORY_DUPLICATE),
        overlaps=count(CATEGORY_OVERLAP),
        mismatches=count(CATEGORY_MISMATCH),
        weekend_days=count(CATEGORY_WEEKEND),
        longest_streak=max((length for _, length, _ in ctx.streaks), default=0),
        admin_hours=round(ctx.admin_hours, 2),
        admin_pct=ctx.admin_pct,
        unrecognized_codes=list(ctx.unrecognized_codes),
    )


def _reference_day(today: date | str) -> str:
    if isinstance(today, datetime):
        return today.date().isoformat()
    if isinstance(today, date):
        return today.isoformat()
    normalized = normalize_date(today)
    if parse_iso_date(normalized) is None:
        raise ValueError(f"Invalid reference date: '{today}'")
    return normalized


def detect_irregularities(
    rows: Iterable[TimeEntry],
    today: date | str,
    admin_codes: Collection[str],
    job_lookup: JobLookup,
    settings: DetectorSettings | None = None,
    rules: Sequence[Rule] = RULES,
) -> FraudReport:
    """
    Run the rule catalogue over one employee's rows.

    Args:
        rows: Raw timesheet rows (any order)
        today: Reference date for the future-date rule
        admin_codes: Job codes counted as admin / non-billable time
        job_lookup: Called with structured job codes, returns those that exist
        settings: Threshold overrides
        rules: Rules to run, in order

    Returns:
        FraudReport with deduplicated, severity-sorted flags

    Raises:
        ValueError: If today is not a valid date
        Any exception raised by job_lookup
    """
    ctx = RuleContext(
        by_date=MappingProxyType(group_by_date(rows)),
        today=_reference_day(today),
        admin_codes=frozenset(admin_codes),
        job_lookup=job_lookup,
        settings=settings or DetectorSettings(),
    )

    raw_flags = []
    for rule in rules:
        raw_flags.extend(rule(ctx))

    flags = deduplicate_flags(raw_flags)
    summary = summarize(flags, ctx)
    return FraudReport(flags=sort_flags(flags), summary=summary)
