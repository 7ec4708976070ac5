from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import ProtectedError, Case, When, IntegerField
from django.shortcuts import get_object_or_404
import logging

from backoffice.core.permissions import IsFinanceUser, IsFinanceManager
from backoffice.core.utils import create_audit_log, parse_bool, parse_date
from .filters import TransactionFilter
from .models import Account, Category, Vendor, Client, Transaction, RecurringRule, ManagementRequest, Budget
from .serializers import (
    AccountSerializer, CategorySerializer, VendorSerializer, ClientSerializer,
    TransactionSerializer, TransferSerializer, BudgetSerializer,
    RecurringRuleSerializer, ManagementRequestSerializer, DecisionSerializer
)
from . import services
from .reports import build_summary

logger = logging.getLogger('backoffice.finance')

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500


def _log(request, action, model_name, obj, changes=None):
    create_audit_log(request=request, action=action, model_name=model_name,
                     object_id=obj.pk, object_name=str(obj), changes=changes or {})


def _filter_active(request, queryset):
    active = parse_bool(request.query_params.get('active'))
    if active is not None:
        queryset = queryset.filter(is_active=active)
    return queryset


def _save_and_log(request, serializer, model_name, created=False):
    obj = serializer.save()
    _log(request, 'create' if created else 'update', model_name, obj, dict(request.data))
    return obj


def _delete(request, obj, model_name, protected_message):
    try:
        obj_id, obj_name = obj.pk, str(obj)
        obj.delete()
    except ProtectedError:
        return Response({'error': protected_message}, status=status.HTTP_400_BAD_REQUEST)
    create_audit_log(request=request, action='delete', model_name=model_name,
                     object_id=obj_id, object_name=obj_name)
    return Response(status=status.HTTP_204_NO_CONTENT)


# Account views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsFinanceUser])
def account_list_create(request):
    """List accounts (?active=true) or create one"""
    if request.method == 'GET':
        queryset = _filter_active(request, Account.objects.all()).order_by('name')
        return Response(AccountSerializer(queryset, many=True).data)
    else:
        serializer = AccountSerializer(data=request.data)
        if serializer.is_valid():
            _save_and_log(request, serializer, 'finance_account', created=True)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsFinanceUser])
def account_detail(request, pk):
    account = get_object_or_404(Account, pk=pk)

    if request.method == 'GET':
        return Response(AccountSerializer(account).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = AccountSerializer(account, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            _save_and_log(request, serializer, 'finance_account')
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        return _delete(request, account, 'finance_account', 'Account has transactions and cannot be deleted')


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFinanceUser])
def account_balance(request, pk):
    """Settled and projected balance, optionally ?as_of=YYYY-MM-DD"""
    account = get_object_or_404(Account, pk=pk)
    try:
        as_of = parse_date(request.query_params.get('as_of'))
    except ValueError:
        return Response({'error': 'Invalid as_of date. Use YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)
    return Response(services.account_balance(account, as_of))


# Category views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsFinanceUser])
def category_list_create(request):
    if request.method == 'GET':
        queryset = Category.objects.select_related('parent').all()
        kind = request.query_params.get('kind')
        if kind:
            queryset = queryset.filter(kind=kind)
        queryset = _filter_active(request, queryset)
        return Response(CategorySerializer(queryset, many=True).data)
    else:
        serializer = CategorySerializer(data=request.data)
        if serializer.is_valid():
            _save_and_log(request, serializer, 'finance_category', created=True)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFinanceUser])
def category_search(request):
    """Name lookup for category pickers (?q=), at most 25 rows"""
    query = (request.query_params.get('q') or '').strip()
    queryset = Category.objects.select_related('parent').all()
    if query:
        queryset = queryset.filter(name__icontains=query)
    return Response(CategorySerializer(queryset[:25], many=True).data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsFinanceUser])
def category_detail(request, pk):
    category = get_object_or_404(Category, pk=pk)

    if request.method == 'GET':
        return Response(CategorySerializer(category).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CategorySerializer(category, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            _save_and_log(request, serializer, 'finance_category')
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        return _delete(request, category, 'finance_category', 'Category is still in use')


# Vendor views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsFinanceUser])
def vendor_list_create(request):
    if request.method == 'GET':
        queryset = _filter_active(request, Vendor.objects.select_related('default_category')).order_by('name')
        return Response(VendorSerializer(queryset, many=True).data)
    else:
        serializer = VendorSerializer(data=request.data)
        if serializer.is_valid():
            _save_and_log(request, serializer, 'finance_vendor', created=True)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsFinanceUser])
def vendor_detail(request, pk):
    vendor = get_object_or_404(Vendor, pk=pk)

    if request.method == 'GET':
        return Response(VendorSerializer(vendor).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = VendorSerializer(vendor, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            _save_and_log(request, serializer, 'finance_vendor')
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if Transaction.objects.filter(counterparty_type='vendor', counterparty_id=vendor.id).exists():
            return Response({'error': 'Vendor is still in use'}, status=status.HTTP_400_BAD_REQUEST)
        return _delete(request, vendor, 'finance_vendor', 'Vendor is still in use')


# Client views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsFinanceUser])
def client_list_create(request):
    if request.method == 'GET':
        queryset = _filter_active(request, Client.objects.select_related('default_category')).order_by('name')
        return Response(ClientSerializer(queryset, many=True).data)
    else:
        serializer = ClientSerializer(data=request.data)
        if serializer.is_valid():
            _save_and_log(request, serializer, 'finance_client', created=True)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsFinanceUser])
def client_detail(request, pk):
    client = get_object_or_404(Client, pk=pk)

    if request.method == 'GET':
        return Response(ClientSerializer(client).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ClientSerializer(client, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            _save_and_log(request, serializer, 'finance_client')
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if Transaction.objects.filter(counterparty_type='client', counterparty_id=client.id).exists():
            return Response({'error': 'Client is still in use'}, status=status.HTTP_400_BAD_REQUEST)
        return _delete(request, client, 'finance_client', 'Client is still in use')


# Transaction views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsFinanceUser])
def transaction_list_create(request):
    """
    List transactions or record one.

    GET filters: status, kind, account, category, counterparty, date_from, date_to,
    paged with limit (default 50) and offset. Returns {data, meta:{count, limit, offset}}.
    """
    if request.method == 'GET':
        try:
            limit = min(int(request.query_params.get('limit', DEFAULT_PAGE_SIZE)), MAX_PAGE_SIZE)
            offset = int(request.query_params.get('offset', 0))
        except ValueError:
            return Response({'error': 'limit and offset must be integers'}, status=status.HTTP_400_BAD_REQUEST)
        if limit < 1 or offset < 0:
            return Response({'error': 'limit must be positive and offset not negative'},
                            status=status.HTTP_400_BAD_REQUEST)

        queryset = Transaction.objects.select_related('account', 'category').all()
        filterset = TransactionFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        queryset = filterset.qs.order_by('-date', '-id')
        count = queryset.count()
        serializer = TransactionSerializer(queryset[offset:offset + limit], many=True)
        return Response({'data': serializer.data, 'meta': {'count': count, 'limit': limit, 'offset': offset}})
    else:
        serializer = TransactionSerializer(data=request.data, context={'request': request})
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsFinanceUser])
def transaction_detail(request, pk):
    tx = get_object_or_404(Transaction.objects.select_related('account', 'category'), pk=pk)

    if request.method == 'GET':
        return Response(TransactionSerializer(tx).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = TransactionSerializer(tx, data=request.data, partial=request.method == 'PATCH',
                                           context={'request': request})
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        services.delete_transaction(tx, user=request.user, request=request)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsFinanceUser])
def transaction_transfer(request):
    """Move money between two accounts; returns both legs"""
    serializer = TransferSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    debit, credit = services.create_transfer(serializer.validated_data, user=request.user, request=request)
    return Response({
        'debit': TransactionSerializer(debit).data,
        'credit': TransactionSerializer(credit).data,
    }, status=status.HTTP_201_CREATED)


# Budget views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsFinanceUser])
def budget_list_create(request):
    if request.method == 'GET':
        queryset = Budget.objects.select_related('category').all()
        period = request.query_params.get('period')
        if period:
            queryset = queryset.filter(period=period)
        return Response(BudgetSerializer(queryset, many=True).data)
    else:
        serializer = BudgetSerializer(data=request.data)
        if serializer.is_valid():
            _save_and_log(request, serializer, 'finance_budget', created=True)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsFinanceUser])
def budget_detail(request, pk):
    budget = get_object_or_404(Budget, pk=pk)

    if request.method == 'GET':
        return Response(BudgetSerializer(budget).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = BudgetSerializer(budget, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            _save_and_log(request, serializer, 'finance_budget')
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        return _delete(request, budget, 'finance_budget', 'Budget cannot be deleted')


# Recurring rule views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsFinanceUser])
def recurring_rule_list_create(request):
    if request.method == 'GET':
        queryset = RecurringRule.objects.all()
        rule_status = request.query_params.get('status')
        if rule_status:
            queryset = queryset.filter(status=rule_status)
        return Response(RecurringRuleSerializer(queryset, many=True).data)
    else:
        serializer = RecurringRuleSerializer(data=request.data, context={'request': request})
        if serializer.is_valid():
            _save_and_log(request, serializer, 'finance_recurring_rule', created=True)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsFinanceUser])
def recurring_rule_detail(request, pk):
    rule = get_object_or_404(RecurringRule, pk=pk)

    if request.method == 'GET':
        return Response(RecurringRuleSerializer(rule).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = RecurringRuleSerializer(rule, data=request.data, partial=request.method == 'PATCH',
                                             context={'request': request})
        if serializer.is_valid():
            _save_and_log(request, serializer, 'finance_recurring_rule')
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        return _delete(request, rule, 'finance_recurring_rule', 'Recurring rule cannot be deleted')


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsFinanceUser])
def recurring_rule_execute(request):
    """Create the transactions of every due recurring rule"""
    result = services.execute_recurring_rules(user=request.user, request=request)
    logger.info(f"Recurring rules executed by {request.user.username}: {result['created_transactions']} created")
    return Response(result)


# Management request views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsFinanceUser])
def management_request_list_create(request):
    """List requests (high priority first, newest first) or open a new one"""
    if request.method == 'GET':
        queryset = ManagementRequest.objects.select_related('requested_by', 'manager').annotate(
            priority_rank=Case(
                When(priority='high', then=0),
                When(priority='normal', then=1),
                When(priority='low', then=2),
                default=3,
                output_field=IntegerField(),
            )
        )
        request_status = request.query_params.get('status')
        if request_status:
            queryset = queryset.filter(status=request_status)
        queryset = queryset.order_by('priority_rank', '-created_at', '-id')
        return Response(ManagementRequestSerializer(queryset, many=True).data)
    else:
        serializer = ManagementRequestSerializer(data=request.data)
        if serializer.is_valid():
            obj = serializer.save(requested_by=request.user)
            _log(request, 'submit', 'finance_management_request', obj, dict(request.data))
            logger.info(f"Management request {obj.id} opened by {request.user.username}")
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsFinanceUser])
def management_request_detail(request, pk):
    management_request = get_object_or_404(ManagementRequest, pk=pk)

    if request.method == 'GET':
        return Response(ManagementRequestSerializer(management_request).data)
    elif request.method in ('PUT', 'PATCH'):
        if management_request.status not in ('open', 'returned'):
            return Response({'error': 'Request already processed'}, status=status.HTTP_400_BAD_REQUEST)
        serializer = ManagementRequestSerializer(management_request, data=request.data,
                                                 partial=request.method == 'PATCH')
        if serializer.is_valid():
            # Resubmitting a returned request reopens it
            _save_and_log(request, serializer, 'finance_management_request')
            if management_request.status == 'returned':
                management_request.status = 'open'
                management_request.save(update_fields=['status', 'updated_at'])
            return Response(ManagementRequestSerializer(management_request).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        return _delete(request, management_request, 'finance_management_request', 'Request cannot be deleted')


def _decision(request, pk, decide):
    management_request = get_object_or_404(ManagementRequest, pk=pk)
    serializer = DecisionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    decide(management_request, request.user, note=serializer.validated_data.get('decision_note'), request=request)
    management_request.refresh_from_db()
    return Response(ManagementRequestSerializer(management_request).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsFinanceManager])
def management_request_approve(request, pk):
    """Apply the request payload to its target and mark it approved"""
    return _decision(request, pk, services.approve_request)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsFinanceManager])
def management_request_return(request, pk):
    return _decision(request, pk, services.return_request)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsFinanceManager])
def management_request_reject(request, pk):
    return _decision(request, pk, services.reject_request)


# Reports
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFinanceUser])
def finance_summary_report(request):
    """P&L, cash flow and budgets vs actual over whole months (?start_date=&end_date=)"""
    try:
        start = parse_date(request.query_params.get('start_date'))
        end = parse_date(request.query_params.get('end_date'))
    except ValueError:
        return Response({'error': 'Invalid date format. Use YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)
    return Response(build_summary(start, end))
