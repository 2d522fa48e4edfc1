"""Views for the day planner API."""

from django.utils.dateparse import parse_date

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from . import services
from .errors import PlannerValidationError
from .serializers import (
    AssignTemplateSerializer,
    DateRangeQuerySerializer,
    DayScheduleSerializer,
    ExceptionCreateSerializer,
    OccurrenceSerializer,
    PlannedDayReadSerializer,
    PlannedDayUpdateSerializer,
    RecurringDeleteSerializer,
    RecurringEditSerializer,
)
from .types import PlannedDayUpdateData


class AssignTemplateView(APIView):
    """
    Assign a day template to the calendar.

    POST /api/calendar/assign-template/
    """

    def post(self, request):
        """Create a planned day, optionally recurring."""
        serializer = AssignTemplateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        data = serializer.validated_data
        planned_day = services.assign_template(
            request.user,
            template_id=data['template_id'],
            start_date=data['start_date'],
            recurrence=data.get('recurrence'),
            end_date=data.get('end_date'),
            notes=data.get('notes', '')
        )

        planned_day = services.get_planned_day(request.user, planned_day.pk)
        response_serializer = PlannedDayReadSerializer(planned_day)
        return Response(response_serializer.data, status=status.HTTP_201_CREATED)


class CalendarRangeView(APIView):
    """
    Resolve planned days over a date range.

    GET /api/calendar/?start=YYYY-MM-DD&end=YYYY-MM-DD
    """

    def get(self, request):
        """List scheduled days, grouped by date."""
        query_serializer = DateRangeQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)

        start = query_serializer.validated_data['start']
        end = query_serializer.validated_data['end']

        scheduled_days = services.get_occurrences(request.user, start, end)

        return Response({
            'date_range': {'start': start.isoformat(), 'end': end.isoformat()},
            'scheduled_days': DayScheduleSerializer(scheduled_days, many=True).data,
            'total_days': len(scheduled_days),
        })


class CalendarDateView(APIView):
    """
    Planned days scheduled on a single date.

    GET /api/calendar/{YYYY-MM-DD}/
    """

    def get(self, request, day):
        """List occurrences on one date."""
        try:
            target = parse_date(day)
        except ValueError:
            target = None
        if target is None:
            raise PlannerValidationError(f"Invalid date: {day}", field='date')

        occurrences = services.get_occurrences_for_date(request.user, target)
        return Response({
            'date': target.isoformat(),
            'occurrences': OccurrenceSerializer(occurrences, many=True).data,
        })


class PlannedDayListView(APIView):
    """
    List the caller's planned days.

    GET /api/calendar/planned/
    """

    def get(self, request):
        """List all planned days."""
        planned_days = services.list_planned_days(request.user)
        serializer = PlannedDayReadSerializer(planned_days, many=True)
        return Response(serializer.data)


class PlannedDayDetailView(APIView):
    """
    Retrieve, update, or delete a planned day.

    GET /api/calendar/planned/{id}/ - Retrieve planned day
    PATCH/PUT /api/calendar/planned/{id}/ - Update end date, recurrence, notes, active flag
    DELETE /api/calendar/planned/{id}/ - Delete planned day
    """

    def get(self, request, pk):
        """Retrieve a planned day."""
        planned_day = services.get_planned_day(request.user, pk)
        serializer = PlannedDayReadSerializer(planned_day)
        return Response(serializer.data)

    def patch(self, request, pk):
        """Update a planned day."""
        serializer = PlannedDayUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        data = serializer.validated_data
        update_data = PlannedDayUpdateData(
            end_date=data.get('end_date'),
            clear_end_date='end_date' in data and data['end_date'] is None,
            recurrence=data.get('recurrence'),
            notes=data.get('notes'),
            is_active=data.get('is_active')
        )
        planned_day = services.update_planned_day(
            request.user,
            pk,
            update_data,
            expected_version=data.get('version')
        )

        response_serializer = PlannedDayReadSerializer(planned_day)
        return Response(response_serializer.data)

    put = patch

    def delete(self, request, pk):
        """Delete a planned day."""
        services.delete_planned_day(request.user, pk)
        return Response({
            'message': 'Planned day deleted successfully'
        }, status=status.HTTP_200_OK)


class ExceptionCreateView(APIView):
    """
    Remove one date from a planned day.

    POST /api/calendar/planned/{id}/exception/
    """

    def post(self, request, pk):
        """Add an exception."""
        serializer = ExceptionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        data = serializer.validated_data
        planned_day = services.add_exception(
            request.user,
            pk,
            data['original_date'],
            reason=data.get('reason', ''),
            expected_version=data.get('version')
        )

        response_serializer = PlannedDayReadSerializer(planned_day)
        return Response(response_serializer.data)


class EditRecurringView(APIView):
    """
    Edit this, this and future, or all occurrences of a planned day.

    PUT /api/calendar/planned/{id}/edit-recurring/
    """

    def put(self, request, pk):
        """Apply a scoped edit."""
        serializer = RecurringEditSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        data = serializer.validated_data
        result = services.edit_recurring(
            request.user,
            pk,
            scope=data['edit_type'],
            original_date=data['original_date'],
            new_template_id=data.get('new_template'),
            new_recurrence=data.get('new_recurrence'),
            expected_version=data.get('version')
        )

        return Response(_mutation_response('Recurring event updated successfully', result))


class DeleteRecurringView(APIView):
    """
    Delete this, this and future, or all occurrences of a planned day.

    DELETE /api/calendar/planned/{id}/delete-recurring/
    """

    def delete(self, request, pk):
        """Apply a scoped delete. Parameters may come in the body or the query string."""
        serializer = RecurringDeleteSerializer(data=request.data or request.query_params)
        serializer.is_valid(raise_exception=True)

        data = serializer.validated_data
        result = services.delete_recurring(
            request.user,
            pk,
            scope=data['edit_type'],
            original_date=data['original_date'],
            expected_version=data.get('version')
        )

        return Response(_mutation_response('Recurring event deleted successfully', result))


def _mutation_response(message, result):
    return {
        'message': message,
        'scope': result.scope,
        'planned_day_id': result.planned_day.pk if result.planned_day is not None else None,
        'created_planned_day_id': result.created.pk if result.created is not None else None,
        'deleted': result.deleted,
    }
