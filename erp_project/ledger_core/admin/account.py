from django.contrib import admin

from ledger_core.models import Account, PostingAccountMapping

from .actions import soft_delete_accounts
from .mixins import TenantAdminMixin


# Register `Account` model
@admin.register(Account)
class AccountAdmin(TenantAdminMixin, admin.ModelAdmin):
    # show key accounting fields
    list_display = (
        "code",
        "name",
        "organization",
        "ac_type",
        "normal_balance",
        "parent",
        "level",
        "is_group",
        "current_balance",
        "is_active",
    )
    list_filter = ("organization", "ac_type", "category", "is_group", "is_active")
    search_fields = ("code", "name")
    # accounts grouped by organization, then sorted by code
    ordering = ("organization", "code")
    # the ledger owns these; deletion goes through the soft-delete action
    readonly_fields = (
        "normal_balance",
        "level",
        "current_balance",
        "is_deleted",
        "deleted_at",
    )
    actions = [soft_delete_accounts]
    fieldsets = (
        (
            None,
            {
                "fields": (
                    "organization",
                    "code",
                    "name",
                    "ac_type",
                    "category",
                    "normal_balance",
                    "parent",
                    "level",
                    "is_group",
                    "description",
                )
            },
        ),
        (
            "Balances",
            {"fields": ("opening_balance", "current_balance")},
        ),
        (
            "Flags",
            {
                "fields": (
                    "is_active",
                    "is_system_account",
                    "is_tax_account",
                    "tax_rate",
                    "is_deleted",
                    "deleted_at",
                )
            },
        ),
    )

    def get_readonly_fields(self, request, obj=None):
        fields = list(super().get_readonly_fields(request, obj))
        if obj is not None and obj.pk:
            # opening balance is fixed once the account exists
            fields.append("opening_balance")
            if obj.has_ledger_activity():
                fields.append("ac_type")
        return fields

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("organization", "parent")


@admin.register(PostingAccountMapping)
class PostingAccountMappingAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("organization", "role", "account")
    list_filter = ("organization", "role")

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("organization", "account")
