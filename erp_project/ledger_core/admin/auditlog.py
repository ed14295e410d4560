from django.contrib import admin

from ledger_core.models import AuditLog

from .mixins import TenantAdminMixin
from .ReadOnly import ReadOnlyAdmin


# Register `AuditLog` model
@admin.register(AuditLog)
class AuditLogAdmin(TenantAdminMixin, ReadOnlyAdmin):
    list_display = (
        "id",
        "organization",
        "user",
        "action",
        "object_type",
        "object_id",
        "created_at",
    )
    search_fields = ("object_type", "object_id", "user__username")
    list_filter = ("organization", "action", "created_at")

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("organization", "user")
