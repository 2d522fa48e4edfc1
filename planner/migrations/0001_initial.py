import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import planner.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='DayTemplate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='day_templates', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='PlannedDay',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('start_date', models.DateField(help_text='First date of the series')),
                ('end_date', models.DateField(blank=True, help_text='Last date of the series (null = indefinite)', null=True)),
                ('recurrence', models.JSONField(default=planner.models.default_recurrence)),
                ('is_active', models.BooleanField(default=True)),
                ('notes', models.TextField(blank=True, default='')),
                ('version', models.PositiveIntegerField(default=1, help_text='Incremented on every mutation, used to detect concurrent edits')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('template', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='planned_days', to='planner.daytemplate')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='planned_days', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['start_date', 'id'],
                'indexes': [
                    models.Index(fields=['user', 'start_date', 'end_date'], name='planner_pla_user_id_2b1c5e_idx'),
                    models.Index(fields=['user', 'is_active'], name='planner_pla_user_id_8f3a0d_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='PlannedDayException',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField()),
                ('action', models.CharField(choices=[('delete', 'Delete'), ('modify', 'Modify')], default='delete', max_length=10)),
                ('reason', models.CharField(blank=True, default='', max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('planned_day', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='exceptions', to='planner.plannedday')),
            ],
            options={
                'ordering': ['date'],
                'constraints': [
                    models.UniqueConstraint(fields=('planned_day', 'date'), name='unique_exception_per_planned_day_date'),
                ],
            },
        ),
    ]
