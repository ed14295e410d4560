from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import OrganizationUserManager, TenantManager


# ---------- Tenant / Organization ----------
class Organization(models.Model):

    """Tenant. Every ledger row hangs off one organization."""
    # Store organization's full display name
    name = models.CharField(max_length=200)

    slug = models.SlugField(  # A URL-friendly identifier
        max_length=80, unique=True  # no two organizations share a slug
    )

    # Link to a user account (creator or admin of organization)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,  # use user model project is configured with
        null=True,
        blank=True,  # optional field
        on_delete=models.SET_NULL,
        related_name="owned_organizations",
    )

    # Single reporting currency (no FX conversion in the ledger)
    currency_code = models.CharField(max_length=10, default="PKR")

    # Store timestamp when the record is first created
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name


# ---------- Custom User ----------
class User(AbstractUser):
    # Inherits from Django's AbstractUser, so it keeps all the usual fields
    """
    AUTH_USER_MODEL = "ledger_core.User" must be set
    before the very first migrate
    """
    # Organization picked by the middleware when the request names none
    default_organization = models.ForeignKey(
        "Organization",
        # Nullable, user might exist before being assigned an organization
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="default_users",
    )

    # Optional contact number field, can be left empty in forms
    phone = models.CharField(max_length=32, blank=True)

    # create_user / create_superuser + tenant lookups
    objects = OrganizationUserManager()

    class Meta:
        indexes = [models.Index(fields=["default_organization"], name="user_default_org_idx")]

    def __str__(self):
        # Fall back to username if no name is set
        return self.get_full_name() or self.username


# ---------- OrganizationMembership ----------
class OrganizationMembership(models.Model):
    # Join model between User and Organization

    ROLE_CHOICES = [
        ("owner", "Owner"),
        ("admin", "Admin"),
        # can post vouchers and invoices
        ("accountant", "Accountant"),
        ("viewer", "Viewer"),  # read-only access
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        # If user is deleted, their memberships go too
        on_delete=models.CASCADE,
        related_name="memberships",
    )

    organization = models.ForeignKey(
        "Organization", on_delete=models.CASCADE, related_name="memberships"
    )

    role = models.CharField(
        max_length=20,
        choices=ROLE_CHOICES,
        default="viewer",  # safe, read-only
    )

    # Suspend someone's access without deleting the record
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        # one membership per user per organization
        constraints = [
            models.UniqueConstraint(
                fields=["user", "organization"],
                name="uq_user_organization_membership",
            ),
        ]
        indexes = [
            models.Index(fields=["organization", "user"], name="membership_org_user_idx"),
        ]

    def __str__(self):
        return f"{self.user} @ {self.organization} ({self.role})"

    def clean(self):
        """
        A user's default_organization must be one of their memberships.
        The membership being validated counts towards that.
        """
        if self.user_id and self.user.default_organization_id:
            default_pk = self.user.default_organization_id

            existing = self.user.memberships.all()
            if self.pk:
                # excluding this record if updating
                existing = existing.exclude(pk=self.pk)
            existing_ids = list(existing.values_list("organization_id", flat=True))

            if default_pk not in existing_ids and default_pk != self.organization_id:
                raise ValidationError(
                    f"Default organization {self.user.default_organization} "
                    "must be one of the user's memberships."
                )

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
