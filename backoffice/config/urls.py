"""
URL configuration for the back-office API.

Every app mounts its endpoints under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "Back Office Admin Panel"
admin.site.site_title = "Back Office Admin Portal"
admin.site.index_title = "Welcome to the Back Office Admin Portal"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('backoffice.core.urls')),
    path('api/v1/', include('backoffice.catalog.urls')),
    path('api/v1/', include('backoffice.sales_channels.urls')),
    path('api/v1/', include('backoffice.bookings.urls')),
    path('api/v1/', include('backoffice.staff.urls')),
    path('api/v1/', include('backoffice.venues.urls')),
    path('api/v1/', include('backoffice.finance.urls')),
    path('api/v1/', include('backoffice.reports.urls')),
    re_path(r'^static/(?P<path>.*)$', serve, {'document_root': settings.STATIC_ROOT}),
]
