"""
URL routing for the calendar API.
"""

from django.urls import path, re_path
from .views import (
    AssignTemplateView,
    CalendarDateView,
    CalendarRangeView,
    DeleteRecurringView,
    EditRecurringView,
    ExceptionCreateView,
    PlannedDayDetailView,
    PlannedDayListView,
)

urlpatterns = [
    path('', CalendarRangeView.as_view(), name='calendar-range'),
    path('assign-template/', AssignTemplateView.as_view(), name='assign-template'),
    path('planned/', PlannedDayListView.as_view(), name='planned-day-list'),
    path('planned/<int:pk>/', PlannedDayDetailView.as_view(), name='planned-day-detail'),
    path('planned/<int:pk>/exception/', ExceptionCreateView.as_view(), name='planned-day-exception'),
    path('planned/<int:pk>/edit-recurring/', EditRecurringView.as_view(), name='planned-day-edit-recurring'),
    path('planned/<int:pk>/delete-recurring/', DeleteRecurringView.as_view(), name='planned-day-delete-recurring'),
    re_path(r'^(?P<day>\d{4}-\d{2}-\d{2})/$', CalendarDateView.as_view(), name='calendar-date'),
]
