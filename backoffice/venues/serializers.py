from rest_framework import serializers
from backoffice.core.serializers import OptionalDateField, ValidityWindowMixin
from .models import Venue, VenueCompensationTerm, NightReport, NightReportVenue, VenueCompensationCollectionLog


class VenueSerializer(serializers.ModelSerializer):
    finance_vendor_name = serializers.CharField(source='finance_vendor.name', read_only=True, default=None)
    finance_client_name = serializers.CharField(source='finance_client.name', read_only=True, default=None)

    class Meta:
        model = Venue
        fields = [
            'id', 'name', 'is_active', 'sort_order', 'allows_open_bar',
            'finance_vendor', 'finance_vendor_name', 'finance_client', 'finance_client_name',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']


class VenueCompensationTermSerializer(ValidityWindowMixin, serializers.ModelSerializer):
    venue_name = serializers.CharField(source='venue.name', read_only=True)
    valid_to = OptionalDateField()

    class Meta:
        model = VenueCompensationTerm
        fields = [
            'id', 'venue', 'venue_name', 'compensation_type', 'direction', 'rate_amount', 'rate_unit',
            'currency_code', 'valid_from', 'valid_to', 'is_active', 'notes',
            'created_by', 'updated_by', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_by', 'updated_by', 'created_at', 'updated_at']

    def validate_currency_code(self, value):
        return value.upper()


class NightReportVenueSerializer(serializers.ModelSerializer):
    venue_name = serializers.CharField(max_length=255, required=False, allow_blank=True)

    class Meta:
        model = NightReportVenue
        fields = [
            'id', 'order_index', 'venue', 'venue_name', 'total_people', 'is_open_bar',
            'compensation_term', 'compensation_type', 'direction', 'rate_amount', 'rate_unit',
            'payout_amount', 'currency_code'
        ]
        read_only_fields = [
            'compensation_term', 'compensation_type', 'direction', 'rate_amount', 'rate_unit',
            'payout_amount', 'currency_code'
        ]

    def validate(self, attrs):
        venue = attrs.get('venue')
        if not attrs.get('venue_name'):
            if venue is None:
                raise serializers.ValidationError({'venue': 'Pick a venue or enter its name'})
            attrs['venue_name'] = venue.name
        return attrs


class NightReportSerializer(serializers.ModelSerializer):
    """A draft report is written together with its venue lines"""
    leader_name = serializers.CharField(source='leader.full_name', read_only=True)
    venues = NightReportVenueSerializer(many=True, required=False)
    total_people = serializers.SerializerMethodField()

    class Meta:
        model = NightReport
        fields = [
            'id', 'leader', 'leader_name', 'activity_date', 'status', 'notes', 'submitted_at',
            'venues', 'total_people', 'created_at', 'updated_at'
        ]
        read_only_fields = ['status', 'submitted_at', 'created_at', 'updated_at']
        extra_kwargs = {'leader': {'required': False}}

    def get_total_people(self, obj):
        return sum(line.total_people for line in obj.venues.all())

    def _write_lines(self, report, lines):
        report.venues.all().delete()
        for index, line in enumerate(lines, start=1):
            line = dict(line)
            line.setdefault('order_index', index)
            NightReportVenue.objects.create(report=report, **line)

    def create(self, validated_data):
        lines = validated_data.pop('venues', [])
        if 'leader' not in validated_data:
            request = self.context.get('request')
            validated_data['leader'] = request.user
        report = NightReport.objects.create(**validated_data)
        self._write_lines(report, lines)
        return report

    def update(self, instance, validated_data):
        lines = validated_data.pop('venues', None)
        instance = super().update(instance, validated_data)
        if lines is not None:
            self._write_lines(instance, lines)
        return instance


class VenueCompensationCollectionLogSerializer(serializers.ModelSerializer):
    venue_name = serializers.CharField(source='venue.name', read_only=True)
    created_by_name = serializers.CharField(source='created_by.full_name', read_only=True, default=None)

    class Meta:
        model = VenueCompensationCollectionLog
        fields = [
            'id', 'venue', 'venue_name', 'direction', 'currency_code', 'amount_minor',
            'range_start', 'range_end', 'finance_transaction', 'note',
            'created_by', 'created_by_name', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_by', 'created_at', 'updated_at']

    def validate_currency_code(self, value):
        return value.upper()

    def validate_amount_minor(self, value):
        if value <= 0:
            raise serializers.ValidationError('Amount must be greater than zero')
        return value

    def validate(self, attrs):
        start = attrs.get('range_start', getattr(self.instance, 'range_start', None))
        end = attrs.get('range_end', getattr(self.instance, 'range_end', None))
        if start and end and end < start:
            raise serializers.ValidationError({'range_end': 'range_end cannot be before range_start'})
        return attrs
