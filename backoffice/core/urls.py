from django.urls import path
from .views import (
    CustomTokenObtainPairView, CustomTokenRefreshView, user_me,
    user_list_create, user_detail,
    user_type_list_create, user_type_detail,
    audit_log_list, audit_log_detail,
)

urlpatterns = [
    # Auth endpoints
    path('auth/login/', CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/me/', user_me, name='user-me'),

    # User endpoints
    path('users/', user_list_create, name='user-list-create'),
    path('users/<int:pk>/', user_detail, name='user-detail'),

    # UserType endpoints
    path('user-types/', user_type_list_create, name='user-type-list-create'),
    path('user-types/<int:pk>/', user_type_detail, name='user-type-detail'),

    # AuditLog endpoints
    path('audit-logs/', audit_log_list, name='audit-log-list'),
    path('audit-logs/<int:pk>/', audit_log_detail, name='audit-log-detail'),
]
