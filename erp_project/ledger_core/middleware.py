from django.utils.deprecation import MiddlewareMixin
from .models import Organization


class CurrentOrganizationMiddleware(MiddlewareMixin):
    # Attach .organization to every request, based on the logged-in user
    def process_request(self, request):
        request.organization = None
        if not request.user.is_authenticated:
            return

        # Fallback: the user's default organization
        request.organization = getattr(request.user, "default_organization", None)

        # A switched organization is stored in the session
        organization_id = request.session.get("active_organization_id")
        if organization_id:
            # user must hold an active membership there
            request.organization = Organization.objects.filter(
                pk=organization_id,
                memberships__user=request.user,
                memberships__is_active=True,
            ).first()
