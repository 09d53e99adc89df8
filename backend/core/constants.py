"""
Core constants — **Single Source of Truth** for project-wide magic numbers.

Any business rule that references a numeric constant or a fixed
vocabulary should import it from here instead of hardcoding.  This
avoids drift between apps that use the same value.
"""

# ── Points rewards ──────────────────────────────────────────────────
# Awarded to a logged-in citizen for filing a complaint.
POINTS_FOR_SUBMISSION: int = 5

# Default award when an admin approves a complaint without naming an amount.
POINTS_FOR_APPROVAL: int = 50

# ── Withdrawals ─────────────────────────────────────────────────────
MIN_WITHDRAWAL_POINTS: int = 100

# ── Complaint vocabulary ────────────────────────────────────────────
COMPLAINT_TYPES: tuple[str, ...] = (
    "cleanliness",
    "punctuality",
    "behavior",
    "other",
)

# Public tracking code: prefix + N random digits (e.g. ``BRTS482913``).
COMPLAINT_TOKEN_PREFIX: str = "BRTS"
COMPLAINT_TOKEN_DIGITS: int = 6

# ── Analytics ───────────────────────────────────────────────────────
# ``timeRange`` query values accepted by the analytics endpoints.
ANALYTICS_TIME_RANGES: dict[str, int] = {
    "7d": 7,
    "30d": 30,
    "90d": 90,
}

# Placeholder retention figure reported until a real cohort metric exists.
USER_RETENTION_PLACEHOLDER: int = 80
