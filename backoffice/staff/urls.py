from django.urls import path
from .views import staff_profile_list_create, staff_profile_detail, staff_payout_list_create, staff_payout_detail

urlpatterns = [
    path('staff-profiles/', staff_profile_list_create, name='staff-profile-list-create'),
    path('staff-profiles/<int:user_id>/', staff_profile_detail, name='staff-profile-detail'),
    path('staff-payouts/', staff_payout_list_create, name='staff-payout-list-create'),
    path('staff-payouts/<int:pk>/', staff_payout_detail, name='staff-payout-detail'),
]
