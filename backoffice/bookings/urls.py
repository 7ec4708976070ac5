from django.urls import path
from .views import (
    booking_list_create, booking_manifest, booking_detail, booking_cancel, booking_event_list_create,
    guest_list_create, guest_detail,
)

urlpatterns = [
    # Booking endpoints
    path('bookings/', booking_list_create, name='booking-list-create'),
    path('bookings/manifest/', booking_manifest, name='booking-manifest'),
    path('bookings/<int:pk>/', booking_detail, name='booking-detail'),
    path('bookings/<int:pk>/cancel/', booking_cancel, name='booking-cancel'),
    path('bookings/<int:pk>/events/', booking_event_list_create, name='booking-event-list-create'),

    # Guest endpoints
    path('guests/', guest_list_create, name='guest-list-create'),
    path('guests/<int:pk>/', guest_detail, name='guest-detail'),
]
