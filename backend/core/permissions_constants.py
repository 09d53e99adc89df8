"""
Permissions Constants — **Single Source of Truth**

Every permission referenced in code (services, views, ``setup_roles``,
tests) MUST use one of the constants defined here.

Organisation
------------
- **Standard CRUD** permissions follow Django's auto-generated naming:
  ``<action>_<model_lowercase>``.  Only the ones the code refers to are
  listed.

- **Custom workflow** permissions map to codenames registered via each
  model's ``Meta.permissions`` tuple.  Adding a new one requires:
    1. Add the constant below.
    2. Add the ``(codename, description)`` to the related model's
       ``Meta.permissions``.
    3. Run ``makemigrations`` + ``migrate``.
    4. Add the constant to the appropriate role in ``setup_roles``.

All constants store the **codename only** (no ``app_label.`` prefix);
use the ``full()`` helper to build the ``app_label.codename`` string
expected by ``User.has_perm``.
"""


class _AppPerms:
    APP_LABEL = ""

    @classmethod
    def full(cls, codename: str) -> str:
        """Return ``"<app_label>.<codename>"``."""
        return f"{cls.APP_LABEL}.{codename}"


# ════════════════════════════════════════════════════════════════════
#  ACCOUNTS APP
# ════════════════════════════════════════════════════════════════════

class AccountsPerms(_AppPerms):
    """Permissions for accounts models."""

    APP_LABEL = "accounts"

    VIEW_USER = "view_user"
    VIEW_DEVICETOKEN = "view_devicetoken"


# ════════════════════════════════════════════════════════════════════
#  CORE APP
# ════════════════════════════════════════════════════════════════════

class CorePerms(_AppPerms):
    """Permissions for core models."""

    APP_LABEL = "core"

    VIEW_NOTIFICATION = "view_notification"

    # ── Custom workflow permissions ─────────────────────────────────
    CAN_VIEW_ACTION_HISTORY = "can_view_action_history"
    """Read the admin audit log."""


# ════════════════════════════════════════════════════════════════════
#  POINTS APP
# ════════════════════════════════════════════════════════════════════

class PointsPerms(_AppPerms):
    """Permissions for the points ledger."""

    APP_LABEL = "points"

    VIEW_POINTSHISTORY = "view_pointshistory"

    CAN_ADJUST_POINTS = "can_adjust_points"
    """Apply a manual signed adjustment to a user's balance."""


# ════════════════════════════════════════════════════════════════════
#  COMPLAINTS APP
# ════════════════════════════════════════════════════════════════════

class ComplaintsPerms(_AppPerms):
    """Permissions for the complaint workflow."""

    APP_LABEL = "complaints"

    VIEW_COMPLAINT = "view_complaint"

    CAN_REVIEW_COMPLAINT = "can_review_complaint"
    """List all complaints and approve / reject them."""


# ════════════════════════════════════════════════════════════════════
#  WITHDRAWALS APP
# ════════════════════════════════════════════════════════════════════

class WithdrawalsPerms(_AppPerms):
    """Permissions for withdrawal processing."""

    APP_LABEL = "withdrawals"

    VIEW_WITHDRAWAL = "view_withdrawal"

    CAN_PROCESS_WITHDRAWAL = "can_process_withdrawal"
    """List all withdrawals and move them through processing."""


# ════════════════════════════════════════════════════════════════════
#  ANALYTICS APP
# ════════════════════════════════════════════════════════════════════

class AnalyticsPerms(_AppPerms):
    """Permissions for the reporting endpoints."""

    APP_LABEL = "analytics"

    CAN_VIEW_ANALYTICS = "can_view_analytics"
    """Read the aggregated dashboard and detail reports."""
