"""
Admin configuration for the planner app.
"""

from django.contrib import admin
from .models import DayTemplate, PlannedDay, PlannedDayException


@admin.register(DayTemplate)
class DayTemplateAdmin(admin.ModelAdmin):
    """Admin interface for DayTemplate model."""

    list_display = ['name', 'user', 'created_at']
    list_filter = ['created_at']
    search_fields = ['name', 'description']


class PlannedDayExceptionInline(admin.TabularInline):
    model = PlannedDayException
    extra = 0
    readonly_fields = ['created_at']


@admin.register(PlannedDay)
class PlannedDayAdmin(admin.ModelAdmin):
    """Admin interface for PlannedDay model."""

    list_display = ['template', 'user', 'recurrence_summary', 'start_date', 'end_date', 'is_active']
    list_filter = ['is_active', 'created_at']
    search_fields = ['template__name', 'notes']
    date_hierarchy = 'start_date'
    inlines = [PlannedDayExceptionInline]

    fieldsets = (
        ('Basic Information', {
            'fields': ('user', 'template', 'notes', 'is_active')
        }),
        ('Recurrence Rules', {
            'fields': ('recurrence',)
        }),
        ('Series Boundaries', {
            'fields': ('start_date', 'end_date')
        }),
        ('Metadata', {
            'fields': ('version', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    readonly_fields = ['version', 'created_at', 'updated_at']
