"""
Core constants — **Single Source of Truth** for project-wide magic numbers.

Any business rule that references a numeric constant should import it
from here instead of hardcoding.  This avoids drift between the
dashboard and the reports, which share the same windows.
"""

# ── Reporting periods ───────────────────────────────────────────────
# ``?period=`` values accepted by the reports endpoints, in days.
REPORT_PERIODS: dict[str, int] = {
    "week": 7,
    "month": 30,
    "quarter": 90,
    "year": 365,
}
DEFAULT_REPORT_PERIOD: str = "month"

# ── Dashboard ───────────────────────────────────────────────────────
CITIZEN_RECENT_LIMIT: int = 5
STAFF_RECENT_LIMIT: int = 10

# Months covered by the admin "registrations" series.
REGISTRATION_HISTORY_MONTHS: int = 6

# ── Feedback ────────────────────────────────────────────────────────
FEEDBACK_RATINGS: tuple[int, ...] = (1, 2, 3, 4, 5)
