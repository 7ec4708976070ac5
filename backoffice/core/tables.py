"""
Table envelope used by the admin front end.

A list rendered with ?view=table comes back as
[{"data": rows, "columns": [{"header", "accessorKey", "type"}]}].
"""
from django.core.exceptions import FieldDoesNotExist
from django.db import models
from django.utils.text import capfirst
from rest_framework import serializers
from rest_framework.response import Response


def wants_table(request):
    return request.query_params.get('view') == 'table'


def column_type(field):
    if isinstance(field, (models.DateField, serializers.DateField, serializers.DateTimeField)):
        return 'date'
    if isinstance(field, (models.BooleanField, serializers.BooleanField)):
        return 'boolean'
    return 'text'


def build_columns(model, serializer_fields):
    """Describe every readable serializer field, preferring the model field for header/type"""
    columns = []
    for name, serializer_field in serializer_fields.items():
        if serializer_field.write_only:
            continue
        try:
            model_field = model._meta.get_field(name)
            header = capfirst(str(model_field.verbose_name))
            field_type = column_type(model_field)
        except FieldDoesNotExist:
            header = capfirst(name.replace('_', ' '))
            field_type = column_type(serializer_field)
        columns.append({'header': header, 'accessorKey': name, 'type': field_type})
    return columns


def table_response(serializer, model, extra_columns=None):
    """Wrap a many=True serializer in the table envelope; extra_columns are appended as given"""
    columns = build_columns(model, serializer.child.fields) + list(extra_columns or [])
    return Response([{'data': serializer.data, 'columns': columns}])
