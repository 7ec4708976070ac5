from django.urls import path
from .views import channel_numbers_report, bookings_summary_report

urlpatterns = [
    path('reports/channel-numbers/', channel_numbers_report, name='report-channel-numbers'),
    path('reports/bookings-summary/', bookings_summary_report, name='report-bookings-summary'),
]
