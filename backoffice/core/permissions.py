from rest_framework.permissions import BasePermission

FINANCE_GROUPS = ['Admin', 'Finance', 'FinanceManager']
FINANCE_MANAGER_GROUPS = ['Admin', 'FinanceManager']


def user_group_names(user):
    return list(user.groups.values_list('name', flat=True))


def is_finance_user(user):
    """Staff accounts and members of the finance groups can use the finance module"""
    if not user or not user.is_authenticated:
        return False
    if user.is_superuser or user.is_staff:
        return True
    return any(group in FINANCE_GROUPS for group in user_group_names(user))


def is_finance_manager(user):
    """Only superusers and Admin/FinanceManager members decide management requests"""
    if not user or not user.is_authenticated:
        return False
    if user.is_superuser:
        return True
    return any(group in FINANCE_MANAGER_GROUPS for group in user_group_names(user))


class IsFinanceUser(BasePermission):
    message = 'Finance access required.'

    def has_permission(self, request, view):
        return is_finance_user(request.user)


class IsFinanceManager(BasePermission):
    message = 'Finance manager access required.'

    def has_permission(self, request, view):
        return is_finance_manager(request.user)
