from django.contrib.auth.models import AbstractUser
from django.db import models


class StaffRole(models.TextChoices):
    """Staff roles in ascending order of privilege.

    Declaration order is the hierarchy; compare roles with ``satisfies``.
    """

    MODERATOR = "moderator", "Moderator"
    ADMIN = "admin", "Admin"
    SUPER_ADMIN = "super_admin", "Super admin"
    OWNER = "owner", "Owner"

    @property
    def level(self):
        return list(StaffRole).index(self) + 1

    def satisfies(self, required):
        return self.level >= StaffRole(required).level


# Roles that can be stored in the membership table. Owners come from settings.OWNER_EMAILS only.
ASSIGNABLE_ROLES = [StaffRole.MODERATOR, StaffRole.ADMIN, StaffRole.SUPER_ADMIN]


class User(AbstractUser):
    email = models.EmailField(unique=True)


class AdminMembership(models.Model):
    user = models.OneToOneField("accounts.User", on_delete=models.CASCADE, related_name="admin_membership")
    role = models.CharField(
        max_length=20,
        choices=[(role.value, role.label) for role in ASSIGNABLE_ROLES],
        default=StaffRole.ADMIN,
    )
    created_by = models.ForeignKey(
        "accounts.User", on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["role"], name="admin_membership_role_idx"),
        ]

    def __str__(self):
        return f"{self.user.email} ({self.role})"
