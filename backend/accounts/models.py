"""
Accounts app models.

Defines the dynamic Role system, a custom User model that extends
Django's ``AbstractUser`` with the citizen's points balance, and the
push registration tokens of each user's devices.
"""

from django.conf import settings
from django.contrib.auth.models import AbstractUser, Permission
from django.core.validators import RegexValidator
from django.db import models
from django.db.models import Q


class Role(models.Model):
    """
    Dynamic, admin-manageable role.

    Roles are created at runtime (``manage.py setup_roles`` seeds the
    defaults: Super Admin, Complaint Reviewer, Finance Officer, Analyst).
    Custom workflow permissions are declared as constants in
    ``core.permissions_constants`` and registered in each model's
    ``Meta.permissions``; a role simply links to a set of them.
    """

    name = models.CharField(
        max_length=100,
        unique=True,
        verbose_name="Role Name",
    )
    description = models.TextField(
        blank=True,
        default="",
        verbose_name="Description",
    )
    permissions = models.ManyToManyField(
        Permission,
        blank=True,
        verbose_name="Permissions",
        help_text="Specific permissions for this role.",
    )

    class Meta:
        verbose_name = "Role"
        verbose_name_plural = "Roles"
        ordering = ["name"]

    def __str__(self):
        return self.name


class Language(models.TextChoices):
    ENGLISH = "en", "English"
    HINDI = "hi", "Hindi"
    MARATHI = "mr", "Marathi"


mobile_validator = RegexValidator(
    regex=r"^\d{10}$",
    message="Mobile number must be exactly 10 digits.",
)


class User(AbstractUser):
    """
    Citizen or staff account.

    ``points`` is the spendable loyalty balance.  It is only ever changed
    by ``points.services.PointsLedgerService`` and can never go negative
    (enforced both by the service and by a database check constraint).

    Staff users hold exactly one ``Role``; plain citizens have none.
    """

    mobile = models.CharField(
        max_length=10,
        unique=True,
        validators=[mobile_validator],
        verbose_name="Mobile Number",
    )
    email = models.EmailField(
        blank=True,
        default="",
        verbose_name="Email Address",
    )
    address = models.TextField(blank=True, default="", verbose_name="Address")
    language = models.CharField(
        max_length=5,
        choices=Language.choices,
        default=Language.ENGLISH,
        verbose_name="Preferred Language",
    )
    points = models.IntegerField(
        default=0,
        verbose_name="Points Balance",
    )

    # ── Default payout details (pre-fill withdrawal requests) ────────
    upi_id = models.CharField(max_length=100, blank=True, default="", verbose_name="UPI ID")
    bank_account = models.CharField(max_length=34, blank=True, default="", verbose_name="Bank Account")
    ifsc = models.CharField(max_length=11, blank=True, default="", verbose_name="IFSC")

    # ── Single-role assignment (dynamic RBAC) ────────────────────────
    role = models.ForeignKey(
        Role,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="users",
        verbose_name="Assigned Role",
    )

    REQUIRED_FIELDS = ["mobile"]

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"
        constraints = [
            models.CheckConstraint(
                condition=Q(points__gte=0),
                name="user_points_non_negative",
            ),
            models.UniqueConstraint(
                fields=["email"],
                condition=~Q(email=""),
                name="user_unique_nonblank_email",
            ),
        ]

    def __str__(self):
        return f"{self.username} ({self.mobile})"

    # ── RBAC Permission Overrides ────────────────────────────────────

    def get_all_permissions(self, obj=None) -> set:
        """
        Return a set of permission strings ('app_label.codename') the user has.
        """
        if not self.is_active:
            return set()

        if self.is_superuser:
            if not hasattr(self, "_superuser_perm_cache"):
                perms = Permission.objects.select_related("content_type").all()
                self._superuser_perm_cache = {f"{p.content_type.app_label}.{p.codename}" for p in perms}
            return self._superuser_perm_cache

        if not self.role_id:
            return set()

        if not hasattr(self, "_perm_cache"):
            perms = self.role.permissions.select_related("content_type")
            self._perm_cache = {f"{p.content_type.app_label}.{p.codename}" for p in perms}

        return self._perm_cache

    def has_perm(self, perm: str, obj=None) -> bool:
        """
        Superusers always have every permission; everyone else gets
        exactly what their role grants.
        """
        if self.is_active and self.is_superuser:
            return True

        return perm in self.get_all_permissions(obj)

    def has_perms(self, perm_list, obj=None) -> bool:
        return all(self.has_perm(perm, obj) for perm in perm_list)

    def has_module_perms(self, app_label: str) -> bool:
        if self.is_active and self.is_superuser:
            return True

        return any(perm.startswith(f"{app_label}.") for perm in self.get_all_permissions())

    @property
    def permissions_list(self) -> list[str]:
        """Sorted ``app_label.codename`` strings granted to this user."""
        return sorted(self.get_all_permissions())


class DevicePlatform(models.TextChoices):
    WEB = "web", "Web"
    ANDROID = "android", "Android"
    IOS = "ios", "iOS"


class DeviceToken(models.Model):
    """
    A push registration token for one of the user's devices.  A user may
    register several; each receives a copy of every push sent to them.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="device_tokens",
        verbose_name="User",
    )
    token = models.CharField(max_length=512, verbose_name="Registration Token")
    platform = models.CharField(
        max_length=10,
        choices=DevicePlatform.choices,
        default=DevicePlatform.WEB,
        verbose_name="Platform",
    )
    created_at = models.DateTimeField(auto_now_add=True, verbose_name="Created At")

    class Meta:
        verbose_name = "Device Token"
        verbose_name_plural = "Device Tokens"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "token"],
                name="device_token_unique_per_user",
            ),
        ]
        default_permissions = ("view", "delete")

    def __str__(self):
        return f"{self.user_id}:{self.platform}:{self.token[:12]}…"
