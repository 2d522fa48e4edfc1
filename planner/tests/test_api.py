"""
Tests for the calendar API endpoints.
"""

from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from django.contrib.auth import get_user_model

from planner.models import DayTemplate, PlannedDay


class CalendarAPITestCase(APITestCase):
    """Authenticated client plus a weekly Monday series starting 2024-01-01."""

    def setUp(self):
        """Set up test client and data."""
        user_model = get_user_model()
        self.user = user_model.objects.create_user('alice', password='secret-pass')
        self.other_user = user_model.objects.create_user('bob', password='secret-pass')
        self.focus = DayTemplate.objects.create(user=self.user, name='Focus day')
        self.rest = DayTemplate.objects.create(user=self.user, name='Rest day')

        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

        response = self.client.post('/api/calendar/assign-template/', {
            'template_id': self.focus.pk,
            'start_date': '2024-01-01',
            'recurrence': {'type': 'weekly', 'interval': 1, 'days_of_week': [1]},
            'notes': 'Weekly planning',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.planned_day_id = response.data['id']

    def january(self):
        response = self.client.get('/api/calendar/', {'start': '2024-01-01', 'end': '2024-01-31'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        return [
            (day['date'], occurrence['template_id'])
            for day in response.data['scheduled_days']
            for occurrence in day['occurrences']
        ]


class AssignTemplateAPITests(CalendarAPITestCase):
    """Test the assign-template endpoint."""

    def test_assign_response(self):
        """Test the assigned planned day is returned with its details."""
        response = self.client.get(f'/api/calendar/planned/{self.planned_day_id}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['template']['name'], 'Focus day')
        self.assertEqual(response.data['recurrence']['days_of_week'], [1])
        self.assertEqual(response.data['recurrence_summary'], 'Every week on Monday')
        self.assertEqual(response.data['exceptions'], [])
        self.assertEqual(response.data['version'], 1)

    def test_assign_rejects_invalid_recurrence(self):
        """Test an invalid recurrence returns 400."""
        response = self.client.post('/api/calendar/assign-template/', {
            'template_id': self.focus.pk,
            'start_date': '2024-01-01',
            'recurrence': {'type': 'weekly', 'days_of_week': []},
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('recurrence', response.data)

    def test_assign_rejects_end_before_start(self):
        """Test an end date before the start date returns 400."""
        response = self.client.post('/api/calendar/assign-template/', {
            'template_id': self.focus.pk,
            'start_date': '2024-01-10',
            'end_date': '2024-01-01',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_assign_unknown_template(self):
        """Test assigning another user's template returns 404."""
        foreign = DayTemplate.objects.create(user=self.other_user, name='Not yours')

        response = self.client.post('/api/calendar/assign-template/', {
            'template_id': foreign.pk,
            'start_date': '2024-01-01',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['code'], 'not_found')

    def test_requires_authentication(self):
        """Test anonymous requests are refused."""
        response = APIClient().get('/api/calendar/', {'start': '2024-01-01', 'end': '2024-01-31'})

        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))


class CalendarQueryAPITests(CalendarAPITestCase):
    """Test the calendar range and date endpoints."""

    def test_range_grouped_by_date(self):
        """Test range results are grouped by date."""
        response = self.client.get('/api/calendar/', {'start': '2024-01-01', 'end': '2024-01-31'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_days'], 5)
        self.assertEqual(
            [day['date'] for day in response.data['scheduled_days']],
            ['2024-01-01', '2024-01-08', '2024-01-15', '2024-01-22', '2024-01-29']
        )
        occurrence = response.data['scheduled_days'][0]['occurrences'][0]
        self.assertEqual(occurrence['planned_day_id'], self.planned_day_id)
        self.assertEqual(occurrence['template_name'], 'Focus day')
        self.assertEqual(occurrence['notes'], 'Weekly planning')
        self.assertEqual(occurrence['recurrence']['type'], 'weekly')

    def test_range_requires_ordered_dates(self):
        """Test an inverted range returns 400."""
        response = self.client.get('/api/calendar/', {'start': '2024-01-31', 'end': '2024-01-01'})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_range_requires_both_dates(self):
        """Test a range without an end date returns 400."""
        response = self.client.get('/api/calendar/', {'start': '2024-01-01'})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_single_date(self):
        """Test listing occurrences on one date."""
        response = self.client.get('/api/calendar/2024-01-08/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['date'], '2024-01-08')
        self.assertEqual(len(response.data['occurrences']), 1)

        response = self.client.get('/api/calendar/2024-01-09/')
        self.assertEqual(response.data['occurrences'], [])

    def test_single_date_invalid(self):
        """Test an impossible date returns 400."""
        response = self.client.get('/api/calendar/2024-02-30/')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_planned_days(self):
        """Test listing the user's planned days."""
        response = self.client.get('/api/calendar/planned/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item['id'] for item in response.data], [self.planned_day_id])

    def test_other_users_cannot_see_series(self):
        """Test another user's series is hidden."""
        self.client.force_authenticate(user=self.other_user)

        response = self.client.get(f'/api/calendar/planned/{self.planned_day_id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        response = self.client.get('/api/calendar/', {'start': '2024-01-01', 'end': '2024-01-31'})
        self.assertEqual(response.data['scheduled_days'], [])


class ExceptionAPITests(CalendarAPITestCase):
    """Test the exception endpoint."""

    def test_add_exception(self):
        """Test adding an exception through the API."""
        response = self.client.post(f'/api/calendar/planned/{self.planned_day_id}/exception/', {
            'original_date': '2024-01-15',
            'reason': 'Conference',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['exceptions'][0]['date'], '2024-01-15')
        self.assertEqual(response.data['exceptions'][0]['action'], 'delete')
        self.assertEqual(
            [d for d, _ in self.january()],
            ['2024-01-01', '2024-01-08', '2024-01-22', '2024-01-29']
        )

    def test_duplicate_exception_conflicts(self):
        """Test a duplicate exception returns 409."""
        url = f'/api/calendar/planned/{self.planned_day_id}/exception/'
        self.client.post(url, {'original_date': '2024-01-15'}, format='json')

        response = self.client.post(url, {'original_date': '2024-01-15'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'duplicate_exception')

    def test_modify_action_not_accepted(self):
        """Test the modify action is rejected."""
        response = self.client.post(f'/api/calendar/planned/{self.planned_day_id}/exception/', {
            'original_date': '2024-01-15',
            'action': 'modify',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class RecurringMutationAPITests(CalendarAPITestCase):
    """Test the edit-recurring and delete-recurring endpoints."""

    def test_edit_this_and_future(self):
        """Test editing this and future occurrences."""
        response = self.client.put(f'/api/calendar/planned/{self.planned_day_id}/edit-recurring/', {
            'edit_type': 'thisAndFuture',
            'original_date': '2024-01-15',
            'new_template': self.rest.pk,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Recurring event updated successfully')
        self.assertIsNotNone(response.data['created_planned_day_id'])
        self.assertEqual(self.january(), [
            ('2024-01-01', self.focus.pk),
            ('2024-01-08', self.focus.pk),
            ('2024-01-15', self.rest.pk),
            ('2024-01-22', self.rest.pk),
            ('2024-01-29', self.rest.pk),
        ])

    def test_edit_this(self):
        """Test editing a single occurrence."""
        response = self.client.put(f'/api/calendar/planned/{self.planned_day_id}/edit-recurring/', {
            'edit_type': 'this',
            'original_date': '2024-01-08',
            'new_template': self.rest.pk,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn(('2024-01-08', self.rest.pk), self.january())
        self.assertNotIn(('2024-01-08', self.focus.pk), self.january())

    def test_edit_invalid_scope(self):
        """Test an unknown edit scope returns 400."""
        response = self.client.put(f'/api/calendar/planned/{self.planned_day_id}/edit-recurring/', {
            'edit_type': 'everything',
            'original_date': '2024-01-15',
            'new_template': self.rest.pk,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid_scope')

    def test_edit_requires_change(self):
        """Test an edit without changes returns 400."""
        response = self.client.put(f'/api/calendar/planned/{self.planned_day_id}/edit-recurring/', {
            'edit_type': 'all',
            'original_date': '2024-01-15',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_edit_stale_date(self):
        """Test editing a date that is not an occurrence returns 400."""
        response = self.client.put(f'/api/calendar/planned/{self.planned_day_id}/edit-recurring/', {
            'edit_type': 'this',
            'original_date': '2024-01-10',
            'new_template': self.rest.pk,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'not_an_occurrence')

    def test_edit_with_stale_version(self):
        """Test an edit with a stale version returns 409."""
        response = self.client.put(f'/api/calendar/planned/{self.planned_day_id}/edit-recurring/', {
            'edit_type': 'all',
            'original_date': '2024-01-15',
            'new_template': self.rest.pk,
            'version': 3,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'conflict')

    def test_delete_this(self):
        """Test deleting a single occurrence."""
        response = self.client.delete(f'/api/calendar/planned/{self.planned_day_id}/delete-recurring/', {
            'edit_type': 'this',
            'original_date': '2024-01-22',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Recurring event deleted successfully')
        self.assertNotIn('2024-01-22', [d for d, _ in self.january()])

    def test_delete_this_and_future(self):
        """Test deleting this and future occurrences."""
        response = self.client.delete(f'/api/calendar/planned/{self.planned_day_id}/delete-recurring/', {
            'edit_type': 'thisAndFuture',
            'original_date': '2024-01-22',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([d for d, _ in self.january()], ['2024-01-01', '2024-01-08', '2024-01-15'])

    def test_delete_all(self):
        """Test deleting every occurrence removes the series."""
        response = self.client.delete(f'/api/calendar/planned/{self.planned_day_id}/delete-recurring/', {
            'edit_type': 'all',
            'original_date': '2024-01-22',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['deleted'])
        self.assertEqual(self.january(), [])
        response = self.client.get(f'/api/calendar/planned/{self.planned_day_id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_delete_with_query_parameters(self):
        """Test delete parameters can come from the query string."""
        response = self.client.delete(
            f'/api/calendar/planned/{self.planned_day_id}/delete-recurring/'
            '?edit_type=this&original_date=2024-01-29'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(self.january()), 4)


class PlannedDayDetailAPITests(CalendarAPITestCase):
    """Test the planned day detail endpoint."""

    def test_patch_metadata(self):
        """Test patching the end date and notes."""
        response = self.client.patch(f'/api/calendar/planned/{self.planned_day_id}/', {
            'end_date': '2024-01-10',
            'notes': 'Only the first two',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['end_date'], '2024-01-10')
        self.assertEqual(response.data['version'], 2)
        self.assertEqual(len(self.january()), 2)

    def test_patch_clears_end_date(self):
        """Test patching a null end date clears it."""
        self.client.patch(f'/api/calendar/planned/{self.planned_day_id}/', {'end_date': '2024-01-10'}, format='json')

        response = self.client.patch(
            f'/api/calendar/planned/{self.planned_day_id}/', {'end_date': None}, format='json'
        )

        self.assertIsNone(response.data['end_date'])
        self.assertEqual(len(self.january()), 5)

    def test_put_deactivates(self):
        """Test deactivating a planned day with PUT."""
        response = self.client.put(
            f'/api/calendar/planned/{self.planned_day_id}/', {'is_active': False}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_active'])
        self.assertEqual(self.january(), [])

    def test_patch_with_stale_version(self):
        """Test a patch with a stale version returns 409."""
        response = self.client.patch(
            f'/api/calendar/planned/{self.planned_day_id}/', {'notes': 'x', 'version': 7}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_delete_planned_day(self):
        """Test deleting a planned day."""
        response = self.client.delete(f'/api/calendar/planned/{self.planned_day_id}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(PlannedDay.objects.filter(pk=self.planned_day_id).exists())
