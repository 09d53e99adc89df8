from __future__ import annotations

from io import StringIO

import pytest
from django.contrib.auth.models import Permission
from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.db import IntegrityError, transaction

from accounts.management.commands.setup_roles import ROLE_PERMISSIONS_MAP
from accounts.models import Role, User


@pytest.mark.django_db
class TestUserConstraints:

    def test_balance_cannot_go_negative(self, create_user):
        user = create_user()
        with pytest.raises(IntegrityError), transaction.atomic():
            User.objects.filter(pk=user.pk).update(points=-1)

    def test_mobile_must_be_ten_digits(self, create_user):
        user = create_user(mobile="12345")
        with pytest.raises(ValidationError):
            user.full_clean()

    def test_blank_emails_do_not_collide(self, create_user):
        create_user(email="")
        create_user(email="")
        assert User.objects.filter(email="").count() == 2

    def test_non_blank_emails_are_unique(self, create_user):
        create_user(email="dup@example.com")
        with pytest.raises(IntegrityError), transaction.atomic():
            create_user(email="dup@example.com")


@pytest.mark.django_db
class TestRolePermissions:

    def test_role_grants_permission(self, create_user):
        role = Role.objects.create(name="Reviewer")
        role.permissions.add(
            Permission.objects.get(content_type__app_label="complaints", codename="can_review_complaint")
        )
        user = create_user(role=role)

        assert user.has_perm("complaints.can_review_complaint")
        assert not user.has_perm("withdrawals.can_process_withdrawal")
        assert user.has_module_perms("complaints")

    def test_inactive_user_has_nothing(self, create_user):
        role = Role.objects.create(name="Reviewer")
        role.permissions.add(
            Permission.objects.get(content_type__app_label="complaints", codename="can_review_complaint")
        )
        user = create_user(role=role, is_active=False)
        assert user.get_all_permissions() == set()

    def test_superuser_has_everything(self, admin_user):
        assert admin_user.has_perm("analytics.can_view_analytics")
        assert admin_user.has_perms(["points.can_adjust_points", "core.can_view_action_history"])


@pytest.mark.django_db
class TestSetupRolesCommand:

    def test_seeds_roles_idempotently(self):
        call_command("setup_roles", stdout=StringIO())
        call_command("setup_roles", stdout=StringIO())

        assert Role.objects.count() == len(ROLE_PERMISSIONS_MAP)
        for (name, _), perms in ROLE_PERMISSIONS_MAP.items():
            role = Role.objects.get(name=name)
            granted = {
                f"{p.content_type.app_label}.{p.codename}"
                for p in role.permissions.select_related("content_type")
            }
            assert granted == set(perms)
