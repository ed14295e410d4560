from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin
from django.utils.translation import gettext_lazy as _

from ledger_core.models import Organization, OrganizationMembership, User

from .forms import UserAdminChangeForm, UserAdminCreationForm
from .mixins import TenantAdminMixin


# Register `Organization` model
@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "slug", "currency_code", "created_at")
    search_fields = ("name", "slug")
    ordering = ("name",)

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        # Fetch all memberships and their users in bulk
        return qs.prefetch_related("memberships__user")


# Extend stock `DjangoUserAdmin`
@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    add_form = UserAdminCreationForm
    form = UserAdminChangeForm
    model = User

    list_display = (
        "username", "email", "get_full_name", "is_staff", "default_organization")
    list_filter = ("is_staff", "is_superuser", "is_active")
    search_fields = ("username", "email", "first_name", "last_name")
    ordering = ("username",)

    fieldsets = (
        (None, {"fields": ("username", "password")}),
        (_("Personal info"), {"fields":
                              ("first_name", "last_name", "email", "phone")}),
        (_("Organization"), {"fields": ("default_organization",)}),
        (
            _("Permissions"),
            {
                "fields": (
                    "is_active",
                    "is_staff",
                    "is_superuser",
                    "groups",
                    "user_permissions",
                ),
            },
        ),
        (_("Important dates"), {"fields": ("last_login", "date_joined")}),
    )

    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": (
                    "username",
                    "email",
                    "default_organization",
                    "password1",
                    "password2",
                ),
            },
        ),
    )

    # Tenant scoping:
    # limit visible users to members of the request.user's organizations
    def get_queryset(self, request):
        qs = super().get_queryset(request)
        if request.user.is_superuser:
            return qs
        allowed_ids = request.user.memberships.values_list(
            "organization_id", flat=True
        )
        # .distinct(): a user in several organizations appears once
        return qs.filter(memberships__organization_id__in=allowed_ids).distinct()


# Register OrganizationMembership model
@admin.register(OrganizationMembership)
class OrganizationMembershipAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("user", "organization", "role", "is_active", "created_at")
    list_filter = ("role", "is_active", "organization")
    search_fields = ("user__username", "user__email", "organization__name")
    readonly_fields = ("created_at",)
    ordering = ("organization__name", "user__username")

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("organization", "user")

    def _managed_organization_ids(self, request):
        # organizations where the current user is Owner/Admin
        return set(
            request.user.memberships.filter(
                role__in=("owner", "admin"), is_active=True
            ).values_list("organization_id", flat=True)
        )

    def has_change_permission(self, request, obj=None):
        if request.user.is_superuser:
            return True
        managed = self._managed_organization_ids(request)
        if obj is None:
            return bool(managed)
        return obj.organization_id in managed

    def has_delete_permission(self, request, obj=None):
        return self.has_change_permission(request, obj)

    def has_add_permission(self, request):
        if request.user.is_superuser:
            return True
        return bool(self._managed_organization_ids(request))
