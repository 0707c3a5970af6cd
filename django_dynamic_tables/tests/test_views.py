from unittest import mock

from django.contrib.auth.models import User
from django.db import DatabaseError
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from django_dynamic_tables.models import Card, DetailPage, DynamicTable
from django_dynamic_tables.serializers import DynamicTableSerializer
from django_dynamic_tables.store import TableStore

from .helpers import make_detail_page, tuition_payload


class AdminTableApiTests(APITestCase):

    def setUp(self):
        self.user = User.objects.create_user('operator', password='secret')
        self.client.force_authenticate(user=self.user)
        self.detail_page = make_detail_page()

    def create_table(self, **overrides):
        response = self.client.post(reverse('tables'), tuition_payload(self.detail_page.pk, **overrides))
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        return response.data

    def test_requires_authentication(self):
        self.client.force_authenticate(user=None)
        response = self.client.get(reverse('tables'))
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))
        response = self.client.post(reverse('tables'), tuition_payload(self.detail_page.pk))
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))
        self.assertFalse(DynamicTable.objects.exists())

    def test_create(self):
        table = self.create_table()
        self.assertEqual(table['title'], 'Tuition Comparison')
        self.assertEqual(table['detailPageId'], self.detail_page.pk)
        self.assertEqual(table['rows'], [{'id': 'r1', 'data': ['MIT', 50000]}])
        for key in ('id', 'description', 'iconUrl', 'columns', 'createdAt', 'updatedAt'):
            self.assertIn(key, table)

    def test_create_invalid(self):
        response = self.client.post(reverse('tables'), tuition_payload(self.detail_page.pk, title=''))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('title', response.data)

    def test_create_for_unknown_detail_page(self):
        response = self.client.post(reverse('tables'), tuition_payload(self.detail_page.pk + 100))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('detailPageId', response.data)

    def test_database_failure(self):
        with mock.patch.object(DynamicTableSerializer, 'save', side_effect=DatabaseError('disk full')):
            with self.assertLogs('django_dynamic_tables.store', level='ERROR'):
                response = self.client.post(reverse('tables'), tuition_payload(self.detail_page.pk))
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data['detail'], 'Failed to save table.')

    def test_list(self):
        for i in range(3):
            self.create_table(title='Table %d' % i)
        response = self.client.get(reverse('tables'), {'limit': 2})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['tables']), 2)
        self.assertEqual(response.data['pagination'], {'page': 1, 'limit': 2, 'total': 3, 'pages': 2})
        # Most recently updated first
        self.assertEqual(response.data['tables'][0]['title'], 'Table 2')

        response = self.client.get(reverse('tables'), {'limit': 2, 'page': 2})
        self.assertEqual([t['title'] for t in response.data['tables']], ['Table 0'])

    def test_list_search_and_filter(self):
        self.create_table(title='Tuition Comparison')
        self.create_table(title='Rankings', description='QS world rankings')
        other = make_detail_page('Stanford')
        self.client.post(reverse('tables'), tuition_payload(other.pk, title='Stanford tuition'))

        response = self.client.get(reverse('tables'), {'search': 'tuition'})
        self.assertEqual(response.data['pagination']['total'], 2)
        response = self.client.get(reverse('tables'), {'search': 'world'})
        self.assertEqual([t['title'] for t in response.data['tables']], ['Rankings'])
        response = self.client.get(reverse('tables'), {'detailPageId': other.pk})
        self.assertEqual([t['title'] for t in response.data['tables']], ['Stanford tuition'])

    def test_list_with_bad_detail_page_filter(self):
        response = self.client.get(reverse('tables'), {'detailPageId': 'abc'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_retrieve_update_delete(self):
        table = self.create_table()
        url = reverse('table-details', kwargs={'pk': table['id']})

        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['columns'], table['columns'])

        payload = tuition_payload(self.detail_page.pk, title='Fees', rows=[{'id': 'r1', 'data': ['Oxford', 9250]}])
        response = self.client.put(url, payload)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['title'], 'Fees')
        self.assertEqual(response.data['rows'], [{'id': 'r1', 'data': ['Oxford', 9250]}])

        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_update_unknown(self):
        url = reverse('table-details', kwargs={'pk': 404})
        response = self.client.put(url, tuition_payload(self.detail_page.pk))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['detail'], 'Table not found.')


class DetailPageApiTests(APITestCase):

    def setUp(self):
        self.user = User.objects.create_user('operator', password='secret')
        self.client.force_authenticate(user=self.user)

    def test_detail_page_is_created_on_first_access(self):
        card = make_detail_page('MIT').card
        new_card = Card.objects.create(category=card.category, title='Harvard')

        response = self.client.get(reverse('detail-page-for-card'), {'cardId': new_card.pk})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['cardId'], new_card.pk)
        self.assertEqual(response.data['content'], 'Detailed information about Harvard')
        self.assertEqual(response.data['tables'], [])

        again = self.client.get(reverse('detail-page-for-card'), {'cardId': new_card.pk})
        self.assertEqual(again.data['id'], response.data['id'])
        self.assertEqual(DetailPage.objects.filter(card=new_card).count(), 1)

    def test_detail_page_includes_tables(self):
        detail_page = make_detail_page()
        TableStore().create(tuition_payload(detail_page.pk))
        response = self.client.get(reverse('detail-page-for-card'), {'cardId': detail_page.card_id})
        self.assertEqual(response.data['id'], detail_page.pk)
        self.assertEqual([t['title'] for t in response.data['tables']], ['Tuition Comparison'])

    def test_card_id_is_required(self):
        response = self.client.get(reverse('detail-page-for-card'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('cardId', response.data)

    def test_unknown_card(self):
        response = self.client.get(reverse('detail-page-for-card'), {'cardId': 404})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class PublicTableApiTests(APITestCase):

    def test_tables_for_detail_page(self):
        detail_page = make_detail_page()
        TableStore().create(tuition_payload(detail_page.pk))

        response = self.client.get(reverse('detail-page-tables', kwargs={'detail_page_id': detail_page.pk}))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['rows'], [{'id': 'r1', 'data': ['MIT', 50000]}])

    def test_detail_page_without_tables(self):
        response = self.client.get(reverse('detail-page-tables', kwargs={'detail_page_id': 404}))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [])


class DetailPageViewTests(TestCase):

    def setUp(self):
        self.detail_page = make_detail_page()
        self.store = TableStore()
        self.url = reverse('detail-page', kwargs={'pk': self.detail_page.pk})

    def test_renders_tables(self):
        payload = tuition_payload(self.detail_page.pk)
        payload['columns'].append({'id': 'c3', 'name': 'Notes', 'type': 'richtext'})
        payload['rows'][0]['data'].append('<b>Need-blind</b><script>alert(1)</script>')
        self.store.create(payload)

        response = self.client.get(self.url)
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'Tuition Comparison')
        self.assertContains(response, '<span>MIT</span>', html=True)
        self.assertContains(response, '50000')
        self.assertContains(response, '<b>Need-blind</b>')
        self.assertNotContains(response, '<script>')

    def test_empty_table(self):
        self.store.create(tuition_payload(self.detail_page.pk, rows=[]))
        response = self.client.get(self.url)
        self.assertContains(response, 'No data to display')

    def test_no_matching_rows(self):
        table = self.store.create(tuition_payload(self.detail_page.pk))
        response = self.client.get(self.url, {'t%s-q' % table['id']: 'zzz'})
        self.assertContains(response, 'No matching results')
        self.assertContains(response, 'Clear search')
        self.assertNotContains(response, '<span>MIT</span>')

    def test_search_only_applies_to_its_table(self):
        first = self.store.create(tuition_payload(self.detail_page.pk))
        self.store.create(tuition_payload(self.detail_page.pk, title='Second', rows=[{'id': 'r1', 'data': ['ETH', 1500]}]))
        response = self.client.get(self.url, {'t%s-q' % first['id']: 'zzz'})
        self.assertContains(response, 'No matching results', count=1)
        self.assertContains(response, 'ETH')

    def test_no_tables(self):
        response = self.client.get(self.url)
        self.assertContains(response, 'No tables have been added')

    def test_unknown_detail_page(self):
        response = self.client.get(reverse('detail-page', kwargs={'pk': 404}))
        self.assertEqual(response.status_code, 404)
