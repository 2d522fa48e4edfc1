"""
Serializers for the day planner API.
"""

from rest_framework import serializers

from .errors import RecurrenceValidationError
from .models import DayTemplate, PlannedDay, PlannedDayException
from .recurrence import parse_recurrence, recurrence_to_dict


class RecurrenceField(serializers.Field):
    """Recurrence rule as a JSON object, validated and normalised on input."""

    default_error_messages = {
        'invalid': 'Recurrence must be a JSON object.',
    }

    def to_internal_value(self, data):
        if not isinstance(data, dict):
            self.fail('invalid')
        try:
            return recurrence_to_dict(parse_recurrence(data))
        except RecurrenceValidationError as exc:
            raise serializers.ValidationError(str(exc))

    def to_representation(self, value):
        return value


class DayTemplateSerializer(serializers.ModelSerializer):
    """Minimal template representation embedded in planned days."""

    class Meta:
        model = DayTemplate
        fields = ['id', 'name', 'description']


class PlannedDayExceptionSerializer(serializers.ModelSerializer):

    class Meta:
        model = PlannedDayException
        fields = ['id', 'date', 'action', 'reason', 'created_at']


class PlannedDayReadSerializer(serializers.ModelSerializer):
    """Serializer for reading/displaying PlannedDay (output)."""

    template = DayTemplateSerializer()
    recurrence_summary = serializers.ReadOnlyField()
    exceptions = PlannedDayExceptionSerializer(many=True)

    class Meta:
        model = PlannedDay
        fields = [
            'id',
            'template',
            'start_date',
            'end_date',
            'recurrence',
            'recurrence_summary',
            'exceptions',
            'is_active',
            'notes',
            'version',
            'created_at',
            'updated_at',
        ]


class AssignTemplateSerializer(serializers.Serializer):
    """Serializer for assigning a template to the calendar."""

    template_id = serializers.IntegerField()
    start_date = serializers.DateField()
    end_date = serializers.DateField(required=False, allow_null=True)
    recurrence = RecurrenceField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, data):
        """Validate assignment bounds."""
        end_date = data.get('end_date')
        if end_date and end_date < data['start_date']:
            raise serializers.ValidationError({
                'end_date': 'End date cannot be before start date.'
            })
        return data


class PlannedDayUpdateSerializer(serializers.Serializer):
    """Serializer for direct planned day updates."""

    end_date = serializers.DateField(required=False, allow_null=True)
    recurrence = RecurrenceField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    is_active = serializers.BooleanField(required=False)
    version = serializers.IntegerField(required=False, min_value=1)


class ExceptionCreateSerializer(serializers.Serializer):
    """Serializer for adding an exception to a planned day."""

    original_date = serializers.DateField()
    action = serializers.ChoiceField(
        choices=[PlannedDayException.ACTION_DELETE],
        default=PlannedDayException.ACTION_DELETE
    )
    reason = serializers.CharField(required=False, allow_blank=True, default='')
    version = serializers.IntegerField(required=False, min_value=1)


class RecurringDeleteSerializer(serializers.Serializer):
    """Serializer for scoped deletes. The scope itself is validated by the service."""

    edit_type = serializers.CharField()
    original_date = serializers.DateField()
    version = serializers.IntegerField(required=False, min_value=1)


class RecurringEditSerializer(RecurringDeleteSerializer):
    """Serializer for scoped edits."""

    new_template = serializers.IntegerField(required=False, allow_null=True)
    new_recurrence = RecurrenceField(required=False, allow_null=True)

    def validate(self, data):
        """Require something to change."""
        if data.get('new_template') is None and data.get('new_recurrence') is None:
            raise serializers.ValidationError(
                "Either new_template or new_recurrence is required."
            )
        return data


class DateRangeQuerySerializer(serializers.Serializer):
    """Serializer for date range query parameters."""

    start = serializers.DateField(required=True)
    end = serializers.DateField(required=True)

    def validate(self, data):
        """Ensure start is not after end."""
        if data['start'] > data['end']:
            raise serializers.ValidationError(
                "Start date must not be after end date."
            )
        return data


class OccurrenceSerializer(serializers.Serializer):
    """One resolved occurrence with the series details a calendar view needs."""

    planned_day_id = serializers.IntegerField()
    template_id = serializers.IntegerField()
    template_name = serializers.CharField(source='planned_day.template.name')
    notes = serializers.CharField(source='planned_day.notes')
    recurrence = serializers.JSONField(source='planned_day.recurrence')


class DayScheduleSerializer(serializers.Serializer):
    date = serializers.DateField()
    occurrences = OccurrenceSerializer(many=True)
