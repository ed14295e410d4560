from django.contrib.auth.models import UserManager
from django.db import models


# -----------------------------------------
# Enforce tenant scoping across all models
# that belong to an organization
# -----------------------------------------
class TenantQuerySet(models.QuerySet):
    def for_organization(self, organization):
        return self.filter(organization=organization)

    def active(self, organization):
        return self.filter(
            organization=organization,  # enforce tenant scoping
            is_active=True,  # only fetch active records
        )


class TenantManager(models.Manager.from_queryset(TenantQuerySet)):
    # Invoice.objects.for_organization(request.organization)
    pass


class LiveTenantQuerySet(TenantQuerySet):
    """Tenant queryset for soft-deletable rows."""

    def alive(self):
        return self.filter(is_deleted=False)

    def for_organization(self, organization):
        # soft-deleted rows are invisible through the tenant entry point
        return super().for_organization(organization).filter(is_deleted=False)


class LiveTenantManager(models.Manager.from_queryset(LiveTenantQuerySet)):
    pass


class LedgerEntryQuerySet(TenantQuerySet):
    def active(self, organization=None):
        qs = self.filter(status="active")
        if organization is not None:
            qs = qs.filter(organization=organization)
        return qs

    def for_voucher(self, voucher):
        return self.filter(voucher=voucher)


class LedgerEntryManager(models.Manager.from_queryset(LedgerEntryQuerySet)):
    pass


class OrganizationUserManager(UserManager):
    """User manager that can also answer tenant-scoped lookups."""

    def for_organization(self, organization):
        return self.get_queryset().filter(
            memberships__organization=organization,
            memberships__is_active=True,
        )
