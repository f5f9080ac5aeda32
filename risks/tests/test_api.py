"""
Test suite for the risk register API.
Covers the taxonomy, control library, risks, attached controls, actions,
heatmap and dashboard endpoints, and the error envelope.
"""

from datetime import timedelta

from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from risks.enums import ActionStatus
from risks.models import ControlLibrary, Risk, RiskAction, RiskCategory, RiskControl, RiskTheme

from .utils import attach_control, create_category, create_control, create_risk, create_theme

# All test classes inside this file:
#  RiskApiTestBase - shared setup (theme, category, control, client)
#  ThemeApiTests - theme CRUD, ordering, reorder, appetite changes
#  CategoryApiTests - categories nested under themes
#  ControlLibraryApiTests - control library CRUD and dropdown
#  RiskApiTests - risk CRUD, filtering, scoring on write
#  RiskControlApiTests - attaching, updating and detaching controls
#  RiskActionApiTests - remediation actions
#  ActionListApiTests - register-wide action list
#  HeatmapApiTests - heatmap endpoint
#  DashboardApiTests - dashboard statistics
#  RecalculateApiTests - single and bulk recalculation

# --- Helper Functions ---


def theme_list_url():
    return reverse('risks_api:theme-list')


def theme_detail_url(theme_id):
    return reverse('risks_api:theme-detail', args=[theme_id])


def category_list_url(theme_id):
    return reverse('risks_api:category-list', args=[theme_id])


def category_detail_url(theme_id, category_id):
    return reverse('risks_api:category-detail', args=[theme_id, category_id])


def control_detail_url(control_id):
    return reverse('risks_api:control-detail', args=[control_id])


def risk_list_url():
    """Return URL for risk list endpoint."""
    return reverse('risks_api:risk-list')


def risk_detail_url(risk_id):
    """Return URL for risk detail endpoint."""
    return reverse('risks_api:risk-detail', args=[risk_id])


def risk_control_list_url(risk_id):
    return reverse('risks_api:risk-control-list', args=[risk_id])


def risk_control_detail_url(risk_id, risk_control_id):
    return reverse('risks_api:risk-control-detail', args=[risk_id, risk_control_id])


def risk_action_list_url(risk_id):
    return reverse('risks_api:risk-action-list', args=[risk_id])


def risk_action_detail_url(risk_id, action_id):
    return reverse('risks_api:risk-action-detail', args=[risk_id, action_id])


def action_list_url():
    return reverse('risks_api:action-list')


# --- Base Test Class ---


class RiskApiTestBase(TestCase):
    """Base test class with common setup for all API tests."""

    def setUp(self):
        self.client = APIClient()
        self.theme = create_theme(code='OPS', name='Operational', board_appetite=3, order=1)
        self.category = create_category(self.theme, code='PROC', name='Process failure')
        self.control = create_control(code='CTL-001', name='Four-eyes review', control_type='Preventive')

    def assertError(self, res, status_code, code):
        self.assertEqual(res.status_code, status_code)
        self.assertEqual(res.data['error']['code'], code)
        self.assertIn('message', res.data['error'])


# --- Themes ---


class ThemeApiTests(RiskApiTestBase):

    def test_list_themes_in_order(self):
        create_theme(code='FIN', name='Financial', order=0)

        res = self.client.get(theme_list_url())

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual([t['code'] for t in res.data], ['FIN', 'OPS'])
        self.assertEqual(res.data[1]['categories_count'], 1)

    def test_create_theme_defaults_order(self):
        res = self.client.post(theme_list_url(), {'code': 'FIN', 'name': 'Financial'}, format='json')

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data['order'], 2)
        self.assertEqual(res.data['board_appetite'], 3)

    def test_create_theme_duplicate_code(self):
        res = self.client.post(theme_list_url(), {'code': 'OPS', 'name': 'Again'}, format='json')
        self.assertError(res, status.HTTP_400_BAD_REQUEST, 'VALIDATION_ERROR')
        self.assertIn('code', res.data['error']['details'])

    def test_create_theme_appetite_out_of_range(self):
        res = self.client.post(
            theme_list_url(), {'code': 'FIN', 'name': 'Financial', 'board_appetite': 6}, format='json',
        )
        self.assertError(res, status.HTTP_400_BAD_REQUEST, 'VALIDATION_ERROR')
        self.assertFalse(RiskTheme.objects.filter(code='FIN').exists())

    def test_patch_appetite_rescores_risks(self):
        risk = create_risk(self.category, financial_impact=4, inherent_probability=1)
        self.assertEqual(risk.appetite_status, 'Outside')

        res = self.client.patch(theme_detail_url(self.theme.pk), {'board_appetite': 5}, format='json')

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        risk.refresh_from_db()
        self.assertEqual(risk.appetite_status, 'OK')

    def test_delete_theme_with_categories(self):
        res = self.client.delete(theme_detail_url(self.theme.pk))

        self.assertError(res, status.HTTP_422_UNPROCESSABLE_ENTITY, 'HAS_DEPENDENTS')
        self.assertTrue(RiskTheme.objects.filter(pk=self.theme.pk).exists())

    def test_delete_empty_theme(self):
        theme = create_theme(code='EMPTY', name='Empty')
        res = self.client.delete(theme_detail_url(theme.pk))
        self.assertEqual(res.status_code, status.HTTP_204_NO_CONTENT)

    def test_unknown_theme(self):
        res = self.client.get(theme_detail_url(9999))
        self.assertError(res, status.HTTP_404_NOT_FOUND, 'NOT_FOUND')

    def test_reorder_themes(self):
        other = create_theme(code='FIN', name='Financial', order=2)

        res = self.client.post(
            reverse('risks_api:theme-reorder'),
            {'items': [{'id': self.theme.pk, 'order': 2}, {'id': other.pk, 'order': 1}]},
            format='json',
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data['count'], 2)
        self.assertEqual(list(RiskTheme.objects.values_list('code', flat=True)), ['FIN', 'OPS'])

    def test_reorder_requires_items(self):
        res = self.client.post(reverse('risks_api:theme-reorder'), {'items': []}, format='json')
        self.assertError(res, status.HTTP_400_BAD_REQUEST, 'VALIDATION_ERROR')


# --- Categories ---


class CategoryApiTests(RiskApiTestBase):

    def test_list_categories_of_theme(self):
        other_theme = create_theme(code='FIN', name='Financial')
        create_category(other_theme, code='MKT', name='Market')

        res = self.client.get(category_list_url(self.theme.pk))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual([c['code'] for c in res.data], ['PROC'])
        self.assertEqual(res.data[0]['theme_id'], self.theme.pk)

    def test_create_category_defaults_order(self):
        res = self.client.post(
            category_list_url(self.theme.pk), {'code': 'PEOPLE', 'name': 'People'}, format='json',
        )

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data['order'], 1)
        self.assertEqual(res.data['theme_id'], self.theme.pk)

    def test_create_category_code_clash_in_theme(self):
        res = self.client.post(
            category_list_url(self.theme.pk), {'code': 'PROC', 'name': 'Again'}, format='json',
        )
        self.assertError(res, status.HTTP_400_BAD_REQUEST, 'VALIDATION_ERROR')

    def test_same_code_under_other_theme(self):
        other_theme = create_theme(code='FIN', name='Financial')
        res = self.client.post(
            category_list_url(other_theme.pk), {'code': 'PROC', 'name': 'Process'}, format='json',
        )
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)

    def test_create_category_unknown_theme(self):
        res = self.client.post(category_list_url(9999), {'code': 'X', 'name': 'X'}, format='json')
        self.assertError(res, status.HTTP_404_NOT_FOUND, 'NOT_FOUND')

    def test_category_under_wrong_theme_not_found(self):
        other_theme = create_theme(code='FIN', name='Financial')
        res = self.client.get(category_detail_url(other_theme.pk, self.category.pk))
        self.assertError(res, status.HTTP_404_NOT_FOUND, 'NOT_FOUND')

    def test_delete_category_with_risks(self):
        create_risk(self.category)

        res = self.client.delete(category_detail_url(self.theme.pk, self.category.pk))

        self.assertError(res, status.HTTP_422_UNPROCESSABLE_ENTITY, 'HAS_DEPENDENTS')
        self.assertTrue(RiskCategory.objects.filter(pk=self.category.pk).exists())


# --- Control library ---


class ControlLibraryApiTests(RiskApiTestBase):

    def test_list_controls_with_usage(self):
        risk = create_risk(self.category)
        attach_control(risk, self.control, effectiveness_score=50)
        create_control(code='CTL-002', name='Reconciliation', control_type='Detective')

        res = self.client.get(reverse('risks_api:control-list'))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data['count'], 2)
        usage = {c['code']: c['usage_count'] for c in res.data['results']}
        self.assertEqual(usage, {'CTL-001': 1, 'CTL-002': 0})

    def test_filter_and_search_controls(self):
        create_control(code='CTL-002', name='Reconciliation', control_type='Detective')

        res = self.client.get(reverse('risks_api:control-list'), {'control_type': 'Detective'})
        self.assertEqual([c['code'] for c in res.data['results']], ['CTL-002'])

        res = self.client.get(reverse('risks_api:control-list'), {'search': 'four-eyes'})
        self.assertEqual([c['code'] for c in res.data['results']], ['CTL-001'])

    def test_dropdown_lists_active_controls(self):
        create_control(code='CTL-OLD', name='Retired', is_active=False)

        res = self.client.get(reverse('risks_api:control-dropdown'))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual([c['code'] for c in res.data['controls']], ['CTL-001'])
        self.assertEqual(res.data['controls'][0]['label'], 'CTL-001 - Four-eyes review')

    def test_delete_control_in_use(self):
        attach_control(create_risk(self.category), self.control, effectiveness_score=50)

        res = self.client.delete(control_detail_url(self.control.pk))

        self.assertError(res, status.HTTP_422_UNPROCESSABLE_ENTITY, 'HAS_DEPENDENTS')
        self.assertTrue(ControlLibrary.objects.filter(pk=self.control.pk).exists())

    def test_delete_unused_control(self):
        res = self.client.delete(control_detail_url(self.control.pk))
        self.assertEqual(res.status_code, status.HTTP_204_NO_CONTENT)


# --- Risks ---


class RiskApiTests(RiskApiTestBase):

    def payload(self, **overrides):
        data = {
            'ref_no': 'R-100',
            'category_id': self.category.pk,
            'name': 'Unreconciled suspense accounts',
            'financial_impact': 5,
            'regulatory_impact': 3,
            'reputational_impact': 2,
            'inherent_probability': 4,
        }
        data.update(overrides)
        return data

    def test_create_risk_calculates_scores(self):
        res = self.client.post(risk_list_url(), self.payload(), format='json')

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data['inherent_impact'], 5)
        self.assertEqual(res.data['inherent_risk_score'], 20.0)
        self.assertEqual(res.data['inherent_rag'], 'Red')
        self.assertEqual(res.data['residual_risk_score'], 20.0)
        self.assertEqual(res.data['residual_rag'], 'Red')
        self.assertEqual(res.data['appetite_status'], 'Outside')
        self.assertEqual(res.data['theme_id'], self.theme.pk)

    def test_create_unrated_risk(self):
        res = self.client.post(
            risk_list_url(),
            self.payload(financial_impact=None, regulatory_impact=None,
                         reputational_impact=None, inherent_probability=None),
            format='json',
        )

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data['inherent_risk_score'], 0.0)
        self.assertEqual(res.data['inherent_rag'], 'Green')
        self.assertEqual(res.data['appetite_status'], 'OK')

    def test_score_fields_cannot_be_written(self):
        res = self.client.post(
            risk_list_url(),
            self.payload(inherent_risk_score=1, residual_rag='Blue', appetite_status='OK'),
            format='json',
        )

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        risk = Risk.objects.get(ref_no='R-100')
        self.assertEqual(float(risk.inherent_risk_score), 20.0)
        self.assertEqual(risk.residual_rag, 'Red')
        self.assertEqual(risk.appetite_status, 'Outside')

    def test_rating_out_of_range(self):
        res = self.client.post(risk_list_url(), self.payload(financial_impact=6), format='json')

        self.assertError(res, status.HTTP_400_BAD_REQUEST, 'VALIDATION_ERROR')
        self.assertIn('financial_impact', res.data['error']['details'])
        self.assertFalse(Risk.objects.exists())

    def test_invalid_tier(self):
        res = self.client.post(risk_list_url(), self.payload(tier='Tier Z'), format='json')
        self.assertError(res, status.HTTP_400_BAD_REQUEST, 'VALIDATION_ERROR')

    def test_unknown_category(self):
        res = self.client.post(risk_list_url(), self.payload(category_id=9999), format='json')

        self.assertError(res, status.HTTP_400_BAD_REQUEST, 'VALIDATION_ERROR')
        self.assertIn('category_id', res.data['error']['details'])

    def test_duplicate_ref_no(self):
        create_risk(self.category, ref_no='R-100')
        res = self.client.post(risk_list_url(), self.payload(), format='json')
        self.assertError(res, status.HTTP_400_BAD_REQUEST, 'VALIDATION_ERROR')

    def test_patch_rescores(self):
        risk = create_risk(self.category, financial_impact=5, inherent_probability=4)

        res = self.client.patch(risk_detail_url(risk.pk), {'inherent_probability': 1}, format='json')

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data['inherent_risk_score'], 5.0)
        self.assertEqual(res.data['inherent_rag'], 'Amber')
        risk.refresh_from_db()
        self.assertEqual(float(risk.inherent_risk_score), 5.0)

    def test_move_risk_to_theme_with_higher_appetite(self):
        relaxed = create_theme(code='FIN', name='Financial', board_appetite=5)
        relaxed_category = create_category(relaxed, code='MKT', name='Market')
        risk = create_risk(self.category, financial_impact=4, inherent_probability=1)

        res = self.client.patch(
            risk_detail_url(risk.pk), {'category_id': relaxed_category.pk}, format='json',
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data['appetite_status'], 'OK')
        self.assertEqual(res.data['theme_id'], relaxed.pk)

    def test_retrieve_includes_controls_and_actions(self):
        risk = create_risk(self.category, financial_impact=5, inherent_probability=4)
        attach_control(risk, self.control, effectiveness_score=60)
        RiskAction.objects.create(risk=risk, title='Automate review')

        res = self.client.get(risk_detail_url(risk.pk))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(len(res.data['controls']), 1)
        self.assertEqual(res.data['controls'][0]['control']['code'], 'CTL-001')
        self.assertEqual(res.data['actions'][0]['title'], 'Automate review')
        self.assertEqual(res.data['residual_risk_score'], 8.0)

    def test_unknown_risk(self):
        res = self.client.get(risk_detail_url(9999))
        self.assertError(res, status.HTTP_404_NOT_FOUND, 'NOT_FOUND')

    def test_delete_risk_removes_controls(self):
        risk = create_risk(self.category)
        attach_control(risk, self.control, effectiveness_score=60)

        res = self.client.delete(risk_detail_url(risk.pk))

        self.assertEqual(res.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(RiskControl.objects.exists())
        self.assertTrue(ControlLibrary.objects.filter(pk=self.control.pk).exists())

    def test_list_filters_and_sorting(self):
        create_risk(self.category, ref_no='R-001', financial_impact=5, inherent_probability=5)
        create_risk(self.category, ref_no='R-002', financial_impact=1, inherent_probability=1)
        create_risk(self.category, ref_no='R-003', financial_impact=3, inherent_probability=2, is_active=False)

        res = self.client.get(risk_list_url())
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual([r['ref_no'] for r in res.data['results']], ['R-001', 'R-003', 'R-002'])

        res = self.client.get(risk_list_url(), {'inherent_rag': 'Red'})
        self.assertEqual([r['ref_no'] for r in res.data['results']], ['R-001'])

        res = self.client.get(risk_list_url(), {'is_active': 'true', 'sort_by': 'ref_no'})
        self.assertEqual([r['ref_no'] for r in res.data['results']], ['R-001', 'R-002'])

        res = self.client.get(risk_list_url(), {'theme_id': self.theme.pk + 1})
        self.assertEqual(res.data['count'], 0)

    def test_non_numeric_id_filters_rejected(self):
        for param in ('theme_id', 'category_id', 'owner_id'):
            res = self.client.get(risk_list_url(), {param: 'abc'})
            self.assertError(res, status.HTTP_400_BAD_REQUEST, 'VALIDATION_ERROR')
            self.assertIn(param, res.data['error']['details'])


# --- Attached controls ---


class RiskControlApiTests(RiskApiTestBase):

    def setUp(self):
        super().setUp()
        self.risk = create_risk(
            self.category, ref_no='R-A',
            financial_impact=5, regulatory_impact=3, reputational_impact=2,
            inherent_probability=4,
        )

    def attach(self, **data):
        data.setdefault('control_id', self.control.pk)
        return self.client.post(risk_control_list_url(self.risk.pk), data, format='json')

    def test_attach_control_rescores_risk(self):
        res = self.attach(effectiveness_score=60, implementation_status='Implemented')

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data['control']['code'], 'CTL-001')

        risk = self.client.get(risk_detail_url(self.risk.pk)).data
        self.assertEqual(risk['residual_risk_score'], 8.0)
        self.assertEqual(risk['residual_rag'], 'Amber')
        self.assertEqual(risk['appetite_status'], 'Outside')

    def test_attach_same_control_twice(self):
        self.attach(effectiveness_score=60)
        before = self.client.get(risk_detail_url(self.risk.pk)).data

        res = self.attach(effectiveness_score=100)

        self.assertError(res, status.HTTP_422_UNPROCESSABLE_ENTITY, 'DUPLICATE_CONTROL')
        after = self.client.get(risk_detail_url(self.risk.pk)).data
        self.assertEqual(after['residual_risk_score'], before['residual_risk_score'])
        self.assertEqual(after['appetite_status'], before['appetite_status'])
        self.assertEqual(RiskControl.objects.count(), 1)

    def test_attach_unknown_control(self):
        res = self.attach(control_id=9999)
        self.assertError(res, status.HTTP_400_BAD_REQUEST, 'VALIDATION_ERROR')

    def test_attach_effectiveness_out_of_range(self):
        res = self.attach(effectiveness_score=101)

        self.assertError(res, status.HTTP_400_BAD_REQUEST, 'VALIDATION_ERROR')
        self.assertFalse(RiskControl.objects.exists())

    def test_attach_to_unknown_risk(self):
        res = self.client.post(risk_control_list_url(9999), {'control_id': self.control.pk}, format='json')
        self.assertError(res, status.HTTP_404_NOT_FOUND, 'NOT_FOUND')

    def test_update_effectiveness(self):
        risk_control_id = self.attach(effectiveness_score=60).data['id']

        res = self.client.patch(
            risk_control_detail_url(self.risk.pk, risk_control_id),
            {'effectiveness_score': 100},
            format='json',
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.risk.refresh_from_db()
        self.assertEqual(float(self.risk.residual_risk_score), 0.0)
        self.assertEqual(self.risk.appetite_status, 'OK')

    def test_detach_restores_residual(self):
        risk_control_id = self.attach(effectiveness_score=60).data['id']

        res = self.client.delete(risk_control_detail_url(self.risk.pk, risk_control_id))

        self.assertEqual(res.status_code, status.HTTP_204_NO_CONTENT)
        self.risk.refresh_from_db()
        self.assertEqual(float(self.risk.residual_risk_score), 20.0)

    def test_control_of_other_risk_not_found(self):
        other = create_risk(self.category, ref_no='R-B')
        risk_control = attach_control(other, self.control, effectiveness_score=10)

        res = self.client.delete(risk_control_detail_url(self.risk.pk, risk_control.pk))

        self.assertError(res, status.HTTP_404_NOT_FOUND, 'NOT_FOUND')
        self.assertTrue(RiskControl.objects.filter(pk=risk_control.pk).exists())


# --- Actions ---


class RiskActionApiTests(RiskApiTestBase):

    def setUp(self):
        super().setUp()
        self.risk = create_risk(self.category, financial_impact=3, inherent_probability=3)

    def test_create_and_complete_action(self):
        res = self.client.post(
            risk_action_list_url(self.risk.pk),
            {'title': 'Automate reconciliation', 'priority': 'High'},
            format='json',
        )
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data['status'], 'Open')
        self.assertIsNone(res.data['completed_at'])

        res = self.client.patch(
            risk_action_detail_url(self.risk.pk, res.data['id']),
            {'status': 'Completed'},
            format='json',
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertIsNotNone(res.data['completed_at'])

    def test_filter_actions_by_status(self):
        RiskAction.objects.create(risk=self.risk, title='Open one')
        RiskAction.objects.create(risk=self.risk, title='Done', status=ActionStatus.COMPLETED)

        res = self.client.get(risk_action_list_url(self.risk.pk), {'status': 'Completed'})

        self.assertEqual([a['title'] for a in res.data], ['Done'])

    def test_invalid_priority(self):
        res = self.client.post(
            risk_action_list_url(self.risk.pk), {'title': 'X', 'priority': 'Urgent'}, format='json',
        )
        self.assertError(res, status.HTTP_400_BAD_REQUEST, 'VALIDATION_ERROR')


class ActionListApiTests(RiskApiTestBase):

    def setUp(self):
        super().setUp()
        today = timezone.localdate()
        self.first = create_risk(self.category, ref_no='R-001', name='Payment error')
        self.second = create_risk(self.category, ref_no='R-002', name='Vendor outage')
        RiskAction.objects.create(
            risk=self.first, title='Close audit finding', status=ActionStatus.COMPLETED,
            due_date=today - timedelta(days=30),
        )
        RiskAction.objects.create(
            risk=self.second, title='Renegotiate contract', status=ActionStatus.IN_PROGRESS,
            due_date=today + timedelta(days=2), priority='High',
        )
        RiskAction.objects.create(
            risk=self.first, title='Automate reconciliation', due_date=today + timedelta(days=20),
        )
        RiskAction.objects.create(
            risk=self.second, title='Add backup supplier', due_date=today + timedelta(days=5),
        )
        RiskAction.objects.create(
            risk=self.first, title='Retrain staff', status=ActionStatus.OVERDUE,
            due_date=today - timedelta(days=1),
        )

    def test_actions_across_risks_ordered_by_status_then_due_date(self):
        res = self.client.get(action_list_url())

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data['count'], 5)
        self.assertEqual(
            [a['title'] for a in res.data['results']],
            [
                'Retrain staff', 'Add backup supplier', 'Automate reconciliation',
                'Renegotiate contract', 'Close audit finding',
            ],
        )
        self.assertEqual(
            res.data['results'][0]['risk'],
            {'id': self.first.pk, 'ref_no': 'R-001', 'name': 'Payment error'},
        )

    def test_filter_by_status_and_priority(self):
        res = self.client.get(action_list_url(), {'status': 'Open'})
        self.assertEqual(
            [a['title'] for a in res.data['results']],
            ['Add backup supplier', 'Automate reconciliation'],
        )

        res = self.client.get(action_list_url(), {'priority': 'High'})
        self.assertEqual([a['title'] for a in res.data['results']], ['Renegotiate contract'])

    def test_search_matches_title_or_risk_name(self):
        res = self.client.get(action_list_url(), {'search': 'vendor'})
        self.assertEqual(
            [a['risk']['ref_no'] for a in res.data['results']], ['R-002', 'R-002'],
        )

        res = self.client.get(action_list_url(), {'search': 'reconcil'})
        self.assertEqual([a['title'] for a in res.data['results']], ['Automate reconciliation'])

    def test_paginated(self):
        res = self.client.get(action_list_url(), {'page_size': 2})

        self.assertEqual(res.data['count'], 5)
        self.assertEqual(len(res.data['results']), 2)
        self.assertIsNotNone(res.data['next'])


# --- Heatmap ---


class HeatmapApiTests(RiskApiTestBase):

    def test_heatmap_places_active_risks(self):
        create_risk(self.category, ref_no='R-001', financial_impact=5, inherent_probability=4)
        create_risk(self.category, ref_no='R-002')
        create_risk(self.category, ref_no='R-003', financial_impact=5, inherent_probability=4, is_active=False)

        res = self.client.get(reverse('risks_api:risk-heatmap'))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(len(res.data['heatmap']), 25)
        self.assertEqual(res.data['total_risks'], 2)
        first = res.data['heatmap'][0]
        self.assertEqual((first['impact'], first['probability']), (1, 1))
        self.assertEqual([r['ref_no'] for r in first['risks']], ['R-002'])
        hot = res.data['heatmap'][4 * 5 + 3]
        self.assertEqual((hot['impact'], hot['probability']), (5, 4))
        self.assertEqual(hot['risks'], [{'ref_no': 'R-001', 'name': 'Payment error', 'score': 20.0, 'rag': 'Red'}])

    def test_heatmap_theme_filter(self):
        other_theme = create_theme(code='FIN', name='Financial')
        create_risk(self.category, ref_no='R-001', financial_impact=2, inherent_probability=2)
        create_risk(create_category(other_theme), ref_no='R-002', financial_impact=3, inherent_probability=3)

        res = self.client.get(reverse('risks_api:risk-heatmap'), {'theme_id': other_theme.pk})

        self.assertEqual(res.data['total_risks'], 1)
        self.assertEqual(res.data['heatmap'][2 * 5 + 2]['risks'][0]['ref_no'], 'R-002')

    def test_heatmap_non_numeric_theme_id(self):
        res = self.client.get(reverse('risks_api:risk-heatmap'), {'theme_id': 'abc'})
        self.assertError(res, status.HTTP_400_BAD_REQUEST, 'VALIDATION_ERROR')


# --- Dashboard ---


class DashboardApiTests(RiskApiTestBase):

    def test_dashboard_statistics(self):
        red = create_risk(self.category, ref_no='R-001', tier='Tier A', financial_impact=5, inherent_probability=5)
        create_risk(self.category, ref_no='R-002', tier='Tier B', financial_impact=3, inherent_probability=2)
        create_risk(self.category, ref_no='R-003', financial_impact=1, inherent_probability=1)
        create_risk(self.category, ref_no='R-004', financial_impact=5, inherent_probability=5, is_active=False)
        yesterday = timezone.localdate() - timedelta(days=1)
        RiskAction.objects.create(risk=red, title='Late', due_date=yesterday)
        RiskAction.objects.create(risk=red, title='Done', status=ActionStatus.COMPLETED)

        res = self.client.get(reverse('risks_api:risk-dashboard'))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        data = res.data
        self.assertEqual(data['total_risks'], 3)
        self.assertEqual(data['high_risks'], 1)
        self.assertEqual(data['medium_risks'], 1)
        self.assertEqual(data['low_risks'], 1)
        self.assertEqual(data['open_actions'], 1)
        self.assertEqual(data['overdue_actions'], 1)
        self.assertEqual(data['by_theme'], [{'name': 'Operational', 'code': 'OPS', 'count': 3}])
        self.assertEqual(data['by_rag'], {'blue': 0, 'green': 1, 'amber': 1, 'red': 1})
        self.assertEqual(
            {row['name']: row['count'] for row in data['by_tier']},
            {'Tier A': 1, 'Tier B': 1, 'Unknown': 1},
        )
        self.assertEqual(
            [(b['id'], b['score'], b['appetite']) for b in data['appetite_breaches']],
            [(red.pk, 25.0, 3.0), (Risk.objects.get(ref_no='R-002').pk, 6.0, 3.0)],
        )


# --- Recalculation ---


class RecalculateApiTests(RiskApiTestBase):

    def test_recalculate_single_risk(self):
        risk = create_risk(self.category, financial_impact=5, inherent_probability=5)
        Risk.objects.filter(pk=risk.pk).update(inherent_risk_score=0, inherent_rag='Green')

        res = self.client.post(reverse('risks_api:risk-recalculate', args=[risk.pk]))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data['inherent_risk_score'], 25.0)
        self.assertEqual(res.data['inherent_rag'], 'Red')

    def test_recalculate_unknown_risk(self):
        res = self.client.post(reverse('risks_api:risk-recalculate', args=[9999]))
        self.assertError(res, status.HTTP_404_NOT_FOUND, 'NOT_FOUND')

    def test_recalculate_all(self):
        create_risk(self.category, ref_no='R-001', financial_impact=2, inherent_probability=2)
        create_risk(self.category, ref_no='R-002', financial_impact=4, inherent_probability=4)

        res = self.client.post(reverse('risks_api:risk-recalculate-all'))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data['count'], 2)
