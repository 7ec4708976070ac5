from django.urls import path
from .views import (
    venue_list_create, venue_detail,
    compensation_term_list_create, compensation_term_detail,
    night_report_list_create, night_report_detail, night_report_submit,
    collection_log_list_create, collection_log_detail,
    venue_numbers_summary_view,
)

urlpatterns = [
    # Venue endpoints
    path('venues/', venue_list_create, name='venue-list-create'),
    path('venues/<int:pk>/', venue_detail, name='venue-detail'),

    # Compensation term endpoints
    path('venue-compensation-terms/', compensation_term_list_create, name='venue-compensation-term-list-create'),
    path('venue-compensation-terms/<int:pk>/', compensation_term_detail, name='venue-compensation-term-detail'),

    # Night report endpoints
    path('night-reports/', night_report_list_create, name='night-report-list-create'),
    path('night-reports/<int:pk>/', night_report_detail, name='night-report-detail'),
    path('night-reports/<int:pk>/submit/', night_report_submit, name='night-report-submit'),

    # Collection endpoints
    path('venue-collections/', collection_log_list_create, name='venue-collection-list-create'),
    path('venue-collections/<int:pk>/', collection_log_detail, name='venue-collection-detail'),

    # Summary
    path('venue-numbers/summary/', venue_numbers_summary_view, name='venue-numbers-summary'),
]
