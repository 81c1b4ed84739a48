from django.contrib import admin
from django.urls import include, path


urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/v1/", include("apps.core.api.v1.urls")),
    path("api/v1/", include("apps.catalog.api.v1.urls")),
    path("api/v1/", include("apps.inventory.api.v1.urls")),
    path("api/v1/", include("apps.farmers.api.v1.urls")),
    path("api/v1/", include("apps.production.api.v1.urls")),
    path("api/v1/", include("apps.sales.api.v1.urls")),
]
