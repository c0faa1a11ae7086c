import json

from django.test import RequestFactory, SimpleTestCase, TestCase

from backoffice.http import (
    ApiError,
    api_view,
    bad_request,
    get_pagination,
    not_found,
    pagination_meta,
    parse_date_param,
    parse_id,
    parse_json_body,
)
from backoffice.models import Product


@api_view('GET')
def _failing_view(request):
    raise RuntimeError('boom')


@api_view('GET')
def _rejecting_view(request):
    raise ApiError('Block not found', status=404)


class PaginationTest(SimpleTestCase):
    def test_defaults_when_missing(self) -> None:
        pagination = get_pagination({})
        self.assertEqual((pagination.page, pagination.page_size, pagination.offset), (1, 20, 0))

    def test_values_are_clamped(self) -> None:
        pagination = get_pagination({'page': '0', 'pageSize': '500'})
        self.assertEqual((pagination.page, pagination.page_size), (1, 100))
        pagination = get_pagination({'page': '-4', 'pageSize': '0'})
        self.assertEqual((pagination.page, pagination.page_size), (1, 1))

    def test_non_numeric_values_fall_back_to_defaults(self) -> None:
        pagination = get_pagination({'page': 'abc', 'pageSize': 'lots'})
        self.assertEqual((pagination.page, pagination.page_size), (1, 20))

    def test_offset_follows_page(self) -> None:
        self.assertEqual(get_pagination({'page': '3', 'pageSize': '10'}).offset, 20)

    def test_meta(self) -> None:
        self.assertEqual(
            pagination_meta(2, 10, 25),
            {'page': 2, 'pageSize': 10, 'total': 25, 'totalPages': 3, 'hasNext': True, 'hasPrev': True},
        )
        meta = pagination_meta(1, 20, 0)
        self.assertEqual(meta['totalPages'], 0)
        self.assertFalse(meta['hasNext'])
        self.assertFalse(meta['hasPrev'])


class ParsingTest(SimpleTestCase):
    def setUp(self) -> None:
        self.factory = RequestFactory()

    def test_parse_id(self) -> None:
        self.assertEqual(parse_id('12', 'product'), 12)
        for raw in ('abc', '0', '-3', '1.5', None):
            with self.assertRaises(ApiError) as ctx:
                parse_id(raw, 'product')
            self.assertEqual(ctx.exception.message, 'Invalid product ID')
            self.assertEqual(ctx.exception.status, 400)

    def test_parse_json_body_rejects_malformed_json(self) -> None:
        request = self.factory.post('/x', data='{not json', content_type='application/json')
        with self.assertRaises(ApiError) as ctx:
            parse_json_body(request)
        self.assertEqual(ctx.exception.message, 'Invalid JSON body')

    def test_parse_json_body_requires_an_object(self) -> None:
        request = self.factory.post('/x', data='[1, 2]', content_type='application/json')
        with self.assertRaises(ApiError):
            parse_json_body(request)

    def test_parse_json_body_empty_is_empty_dict(self) -> None:
        request = self.factory.post('/x', data='', content_type='application/json')
        self.assertEqual(parse_json_body(request), {})

    def test_parse_date_param(self) -> None:
        self.assertIsNone(parse_date_param({}, 'date'))
        self.assertEqual(parse_date_param({'date': '2024-05-01'}, 'date').isoformat(), '2024-05-01')
        self.assertEqual(parse_date_param({'date': '2024-05-01T10:00:00Z'}, 'date').isoformat(), '2024-05-01')
        with self.assertRaises(ApiError):
            parse_date_param({'date': 'yesterday'}, 'date')


class ApiViewTest(SimpleTestCase):
    def setUp(self) -> None:
        self.factory = RequestFactory()

    def test_api_error_becomes_json(self) -> None:
        response = _rejecting_view(self.factory.get('/x'))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(json.loads(response.content), {'error': 'Block not found'})

    def test_unexpected_error_is_logged_and_hidden(self) -> None:
        with self.assertLogs('backoffice.http', level='ERROR') as logs:
            response = _failing_view(self.factory.get('/x'))
        self.assertEqual(response.status_code, 500)
        self.assertEqual(json.loads(response.content), {'error': 'Internal Server Error'})
        self.assertIsInstance(logs.records[0].exc_info[1], RuntimeError)

    def test_method_not_allowed(self) -> None:
        response = _failing_view(self.factory.post('/x'))
        self.assertEqual(response.status_code, 405)
        self.assertEqual(response['Content-Type'], 'application/json')
        self.assertEqual(response['Allow'], 'GET')
        self.assertEqual(json.loads(response.content), {'error': 'Method not allowed'})

    def test_error_shortcuts(self) -> None:
        response = bad_request('Invalid ID')
        self.assertEqual((response.status_code, json.loads(response.content)), (400, {'error': 'Invalid ID'}))
        response = not_found()
        self.assertEqual((response.status_code, json.loads(response.content)), (404, {'error': 'Not found'}))


class ListEndpointPagingTest(TestCase):
    url = '/api/v1/products'

    def test_page_past_the_end_is_empty(self) -> None:
        Product.objects.create(name='Essence (Gasoline)')
        for page in ('2', '99999999999999999999'):
            response = self.client.get(self.url, {'page': page})
            self.assertEqual(response.status_code, 200, page)
            payload = response.json()
            self.assertEqual(payload['data'], [])
            self.assertEqual(payload['page'], int(page))
            self.assertEqual(payload['total'], 1)
            self.assertFalse(payload['hasNext'])

    def test_unsupported_method_answers_json(self) -> None:
        response = self.client.put(self.url, data='{}', content_type='application/json')
        self.assertEqual(response.status_code, 405)
        self.assertEqual(response.json(), {'error': 'Method not allowed'})
        self.assertEqual(response['Allow'], 'GET, POST')
