from django.urls import path
from .views import (
    account_list_create, account_detail, account_balance,
    category_list_create, category_search, category_detail,
    vendor_list_create, vendor_detail,
    client_list_create, client_detail,
    transaction_list_create, transaction_detail, transaction_transfer,
    budget_list_create, budget_detail,
    recurring_rule_list_create, recurring_rule_detail, recurring_rule_execute,
    management_request_list_create, management_request_detail,
    management_request_approve, management_request_return, management_request_reject,
    finance_summary_report,
)

urlpatterns = [
    # Account endpoints
    path('finance/accounts/', account_list_create, name='finance-account-list-create'),
    path('finance/accounts/<int:pk>/', account_detail, name='finance-account-detail'),
    path('finance/accounts/<int:pk>/balance/', account_balance, name='finance-account-balance'),

    # Category endpoints
    path('finance/categories/', category_list_create, name='finance-category-list-create'),
    path('finance/categories/search/', category_search, name='finance-category-search'),
    path('finance/categories/<int:pk>/', category_detail, name='finance-category-detail'),

    # Counterparty endpoints
    path('finance/vendors/', vendor_list_create, name='finance-vendor-list-create'),
    path('finance/vendors/<int:pk>/', vendor_detail, name='finance-vendor-detail'),
    path('finance/clients/', client_list_create, name='finance-client-list-create'),
    path('finance/clients/<int:pk>/', client_detail, name='finance-client-detail'),

    # Transaction endpoints
    path('finance/transactions/', transaction_list_create, name='finance-transaction-list-create'),
    path('finance/transactions/transfer/', transaction_transfer, name='finance-transaction-transfer'),
    path('finance/transactions/<int:pk>/', transaction_detail, name='finance-transaction-detail'),

    # Budget endpoints
    path('finance/budgets/', budget_list_create, name='finance-budget-list-create'),
    path('finance/budgets/<int:pk>/', budget_detail, name='finance-budget-detail'),

    # Recurring rule endpoints
    path('finance/recurring-rules/', recurring_rule_list_create, name='finance-recurring-rule-list-create'),
    path('finance/recurring-rules/execute/', recurring_rule_execute, name='finance-recurring-rule-execute'),
    path('finance/recurring-rules/<int:pk>/', recurring_rule_detail, name='finance-recurring-rule-detail'),

    # Management request endpoints
    path('finance/management-requests/', management_request_list_create,
         name='finance-management-request-list-create'),
    path('finance/management-requests/<int:pk>/', management_request_detail,
         name='finance-management-request-detail'),
    path('finance/management-requests/<int:pk>/approve/', management_request_approve,
         name='finance-management-request-approve'),
    path('finance/management-requests/<int:pk>/return/', management_request_return,
         name='finance-management-request-return'),
    path('finance/management-requests/<int:pk>/reject/', management_request_reject,
         name='finance-management-request-reject'),

    # Reports
    path('finance/reports/summary/', finance_summary_report, name='finance-summary-report'),
]
