"""Admin back-office controllers."""

from hotelsite.admin.media import AdminAuthController, MediaAdminController

__all__ = ["AdminAuthController", "MediaAdminController"]
