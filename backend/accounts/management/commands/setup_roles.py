"""
Management command: setup_roles
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Seeds the database with the staff **Roles** and links each role to its
set of Django permissions.

This command does NOT create Permission objects.  Standard CRUD
permissions are created by ``migrate``; custom workflow permissions are
declared in each model's ``Meta.permissions`` tuple.

The command is **idempotent** — existing roles are updated and their
permissions replaced to match the mapping below.

Usage::

    python manage.py setup_roles
"""

from django.contrib.auth.models import Permission
from django.core.management.base import BaseCommand

from accounts.models import Role
from core.permissions_constants import (
    AccountsPerms,
    AnalyticsPerms,
    ComplaintsPerms,
    CorePerms,
    PointsPerms,
    WithdrawalsPerms,
)

# ────────────────────────────────────────────────────────────────────
# Role → Permission mapping  (full ``app_label.codename`` strings)
# ────────────────────────────────────────────────────────────────────

ROLE_PERMISSIONS_MAP: dict[tuple[str, str], list[str]] = {
    (
        "Super Admin",
        "Full access to complaints, points, withdrawals, analytics and the audit log.",
    ): [
        AccountsPerms.full(AccountsPerms.VIEW_USER),
        AccountsPerms.full(AccountsPerms.VIEW_DEVICETOKEN),
        ComplaintsPerms.full(ComplaintsPerms.VIEW_COMPLAINT),
        ComplaintsPerms.full(ComplaintsPerms.CAN_REVIEW_COMPLAINT),
        PointsPerms.full(PointsPerms.VIEW_POINTSHISTORY),
        PointsPerms.full(PointsPerms.CAN_ADJUST_POINTS),
        WithdrawalsPerms.full(WithdrawalsPerms.VIEW_WITHDRAWAL),
        WithdrawalsPerms.full(WithdrawalsPerms.CAN_PROCESS_WITHDRAWAL),
        AnalyticsPerms.full(AnalyticsPerms.CAN_VIEW_ANALYTICS),
        CorePerms.full(CorePerms.CAN_VIEW_ACTION_HISTORY),
    ],
    (
        "Complaint Reviewer",
        "Triages citizen complaints and approves or rejects them.",
    ): [
        ComplaintsPerms.full(ComplaintsPerms.VIEW_COMPLAINT),
        ComplaintsPerms.full(ComplaintsPerms.CAN_REVIEW_COMPLAINT),
    ],
    (
        "Finance Officer",
        "Processes withdrawal requests and corrects point balances.",
    ): [
        PointsPerms.full(PointsPerms.VIEW_POINTSHISTORY),
        PointsPerms.full(PointsPerms.CAN_ADJUST_POINTS),
        WithdrawalsPerms.full(WithdrawalsPerms.VIEW_WITHDRAWAL),
        WithdrawalsPerms.full(WithdrawalsPerms.CAN_PROCESS_WITHDRAWAL),
    ],
    (
        "Analyst",
        "Read-only access to reporting.",
    ): [
        AnalyticsPerms.full(AnalyticsPerms.CAN_VIEW_ANALYTICS),
        CorePerms.full(CorePerms.CAN_VIEW_ACTION_HISTORY),
    ],
}


class Command(BaseCommand):
    help = (
        "Seeds the staff Roles and maps each role to its Django "
        "permissions.  Safe to run multiple times (idempotent).  "
        "Does NOT create permissions — run `migrate` first."
    )

    def handle(self, *args, **options):
        self.stdout.write(self.style.MIGRATE_HEADING("\nSeeding roles & permissions\n"))

        all_permissions: dict[str, Permission] = {
            f"{p.content_type.app_label}.{p.codename}": p
            for p in Permission.objects.select_related("content_type").all()
        }

        created_count = 0
        warnings = 0

        for (role_name, description), perm_names in ROLE_PERMISSIONS_MAP.items():
            role, created = Role.objects.get_or_create(
                name=role_name,
                defaults={"description": description},
            )
            if not created and role.description != description:
                role.description = description
                role.save(update_fields=["description"])

            resolved: list[Permission] = []
            for name in perm_names:
                perm = all_permissions.get(name)
                if perm is None:
                    warnings += 1
                    self.stdout.write(self.style.WARNING(
                        f"  Permission '{name}' not found; skipped for role '{role_name}'."
                    ))
                    continue
                resolved.append(perm)

            role.permissions.set(resolved)
            created_count += int(created)

            self.stdout.write(self.style.SUCCESS(
                f"  {'Created' if created else 'Updated'} role: {role_name:<20s} "
                f"(permissions={len(resolved)})"
            ))

        summary = (
            f"Done. {created_count} role(s) created, "
            f"{len(ROLE_PERMISSIONS_MAP) - created_count} updated."
        )
        if warnings:
            summary += f" {warnings} permission warning(s)."
        self.stdout.write(self.style.SUCCESS(summary))
