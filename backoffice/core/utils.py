"""Shared helpers: audit logging, query parameter parsing, validity windows"""
import calendar
import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from django.conf import settings
from django.db.models import Q
from django.utils import timezone

from .models import AuditLog

logger = logging.getLogger('backoffice.core')

TRUE_VALUES = {'1', 'true', 'yes', 'on'}
FALSE_VALUES = {'0', 'false', 'no', 'off'}


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_name=None, metadata=None):
    """
    Create an audit log entry

    Args:
        request: Django request object (for user and IP) - optional if user is provided
        action: Action type (create, update, delete, approve, ...)
        model_name: Name of the model being acted upon
        object_id: ID of the object
        changes: Dictionary of changes made
        user: Optional user override (defaults to request.user if request provided)
        object_name: Human-readable name of the object
        metadata: Extra context (e.g. transfer group, scheduled date)
    """
    try:
        audit_user = user
        if audit_user is None and request is not None and hasattr(request, 'user'):
            audit_user = request.user

        if not action or not model_name or object_id is None:
            logger.warning(
                f"Audit log creation skipped: missing required fields "
                f"(action={action}, model_name={model_name}, object_id={object_id})"
            )
            return None

        return AuditLog.objects.create(
            user=audit_user if audit_user and audit_user.is_authenticated else None,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=(str(object_name)[:255] if object_name else None),
            changes=changes or {},
            metadata=metadata or {},
            ip_address=get_client_ip(request) if request else None,
        )
    except Exception as e:
        # Don't fail the main operation if audit logging fails
        logger.error(f"Failed to create audit log: {str(e)}")
        return None


def parse_bool(value):
    """Parse a query-string flag; returns None when absent or unrecognised"""
    if value is None:
        return None
    normalized = str(value).strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    return None


def parse_date(value):
    """Parse YYYY-MM-DD (or an ISO datetime prefix). Raises ValueError when invalid."""
    if value in (None, ''):
        return None
    return datetime.strptime(str(value).strip()[:10], '%Y-%m-%d').date()


def parse_id(value):
    """Parse a positive integer id from a query string. Raises ValueError when invalid."""
    if value in (None, ''):
        return None
    parsed = int(str(value).strip())
    if parsed < 1:
        raise ValueError(f'Invalid id: {value}')
    return parsed


def effective_on(queryset, on_date):
    """
    Narrow a queryset of rows carrying valid_from/valid_to to those in force on a date.

    valid_to is inclusive and open ended when null. The most recently started row
    comes first, ties broken by the highest id.
    """
    return queryset.filter(
        Q(valid_from__lte=on_date),
        Q(valid_to__isnull=True) | Q(valid_to__gte=on_date),
    ).order_by('-valid_from', '-id')


def store_timezone():
    return ZoneInfo(settings.STORE_TIMEZONE)


def store_today():
    """Calendar date at the store, which is what 'today' means for bookings and reports"""
    return timezone.localdate(timezone=store_timezone())


def is_full_month(start, end):
    """True when [start, end] is exactly one calendar month"""
    if not start or not end:
        return False
    return start.day == 1 and end == start.replace(day=calendar.monthrange(start.year, start.month)[1])
