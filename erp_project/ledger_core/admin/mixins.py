class TenantAdminMixin:
    """
    Enforce tenant isolation in Django admin.
    Uses request.organization (set by CurrentOrganizationMiddleware)
    or falls back to request.user.default_organization.
    """

    def _get_request_organization(self, request):
        organization = getattr(request, "organization", None)
        if organization is None:
            user = getattr(request, "user", None)
            organization = getattr(user, "default_organization", None)
        return organization

    def get_queryset(self, request):
        qs = super().get_queryset(request)

        # superusers see everything
        if request.user.is_superuser:
            return qs
        organization = self._get_request_organization(request)
        if organization is None:
            return qs.none()
        return qs.filter(**{self.tenant_lookup: organization})

    # how a row reaches its organization (lines go through their header)
    tenant_lookup = "organization"

    def formfield_for_foreignkey(self, db_field, request, **kwargs):
        """
        Restrict foreignkey dropdowns to the current organization
        (organization field, account field, customer/supplier field).
        """
        if not request.user.is_superuser:
            organization = self._get_request_organization(request)
            rel_model = db_field.related_model

            if db_field.name == "organization":
                qs = rel_model.objects.filter(pk=getattr(organization, "pk", None))
                kwargs["queryset"] = qs if organization else qs.none()
            elif any(f.name == "organization" for f in rel_model._meta.fields):
                qs = rel_model._default_manager.filter(organization=organization)
                kwargs["queryset"] = qs if organization else qs.none()

        return super().formfield_for_foreignkey(db_field, request, **kwargs)

    def save_model(self, request, obj, form, change):
        # Ensure object is always owned by the organization on save (unless superuser)
        if not request.user.is_superuser and hasattr(obj, "organization_id"):
            organization = self._get_request_organization(request)
            if organization is not None:
                obj.organization = organization
        super().save_model(request, obj, form, change)
