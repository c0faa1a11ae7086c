from datetime import date
from decimal import Decimal

from django.test import TestCase

from backoffice.models import Product, Stock, StockRecord

from .utils import JsonApiMixin


class StockStatusTest(TestCase):
    def test_bands(self) -> None:
        product = Product.objects.create(name='Essence')
        expectations = [
            ('0', 'critical'),
            ('50', 'critical'),
            ('50.01', 'low'),
            ('100', 'low'),
            ('200', 'medium'),
            ('200.01', 'good'),
        ]
        for quantity, status in expectations:
            stock = Stock(product=product, quantity=Decimal(quantity))
            self.assertEqual(stock.status, status, quantity)


class StockApiTest(JsonApiMixin, TestCase):
    def setUp(self) -> None:
        self.mazout = Product.objects.create(name='Mazout (Diesel)')
        self.essence = Product.objects.create(name='Essence (Gasoline)')

    def test_create_and_list_by_product_name(self) -> None:
        response = self.post_json('stock', {'productId': self.mazout.pk, 'quantity': 80})
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['status'], 'low')
        self.post_json('stock', {'productId': self.essence.pk, 'quantity': '5000'})

        response = self.client.get(self.url('stock'))
        data = response.json()['data']
        self.assertEqual([item['product']['name'] for item in data], ['Essence (Gasoline)', 'Mazout (Diesel)'])
        self.assertEqual(data[0]['quantity'], '5000.00')
        self.assertEqual(data[0]['status'], 'good')

    def test_one_stock_row_per_product(self) -> None:
        Stock.objects.create(product=self.essence, quantity=Decimal('10'))
        response = self.post_json('stock', {'productId': self.essence.pk, 'quantity': 20})
        self.assertEqual(response.status_code, 400)
        self.assertIn('Stock already exists', response.json()['error'])

    def test_unknown_product(self) -> None:
        response = self.post_json('stock', {'productId': 999, 'quantity': 20})
        self.assertEqual(response.status_code, 400)
        self.assertIn('Product not found', response.json()['error'])

    def test_product_id_must_be_a_whole_number(self) -> None:
        for value in (self.essence.pk + 0.9, True, f'{self.essence.pk}.9'):
            response = self.post_json('stock', {'productId': value, 'quantity': 20})
            self.assertEqual(response.status_code, 400, value)
            self.assertEqual(response.json()['error'], 'productId: Product not found')
        self.assertFalse(Stock.objects.exists())

    def test_update_quantity(self) -> None:
        stock = Stock.objects.create(product=self.essence, quantity=Decimal('10'))
        response = self.patch_json('stock_detail', stock.pk, {'quantity': 150.5})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['quantity'], '150.50')
        self.assertEqual(response.json()['status'], 'medium')

        response = self.patch_json('stock_detail', stock.pk, {'quantity': -1})
        self.assertEqual(response.status_code, 400)
        self.assertIn('quantity:', response.json()['error'])

    def test_delete(self) -> None:
        stock = Stock.objects.create(product=self.essence, quantity=Decimal('10'))
        self.assertEqual(self.delete('stock_detail', stock.pk).status_code, 204)
        self.assertFalse(Stock.objects.exists())
        self.assertEqual(self.delete('stock_detail', stock.pk).status_code, 404)


class StockRecordApiTest(JsonApiMixin, TestCase):
    def setUp(self) -> None:
        self.essence = Product.objects.create(name='Essence (Gasoline)')
        self.mazout = Product.objects.create(name='Mazout (Diesel)')

    def _record(self, product, day, quantity='100'):
        return StockRecord.objects.create(product=product, record_date=day, quantity=Decimal(quantity))

    def test_create(self) -> None:
        response = self.post_json(
            'stock_records',
            {'productId': self.essence.pk, 'quantity': 4950.5, 'recordDate': '2024-05-01', 'notes': 'Daily stock check'},
        )
        self.assertEqual(response.status_code, 201)
        payload = response.json()
        self.assertEqual(payload['recordDate'], '2024-05-01')
        self.assertEqual(payload['quantity'], '4950.50')
        self.assertEqual(payload['product']['name'], 'Essence (Gasoline)')

    def test_duplicate_product_and_date(self) -> None:
        self._record(self.essence, date(2024, 5, 1))
        response = self.post_json(
            'stock_records',
            {'productId': self.essence.pk, 'quantity': 10, 'recordDate': '2024-05-01'},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json()['error'],
            'Stock record already exists for this product and date. Use PATCH to update.',
        )

    def test_validation(self) -> None:
        response = self.post_json('stock_records', {'productId': 0, 'quantity': 10, 'recordDate': '2024-05-01'})
        self.assertEqual(response.status_code, 400)
        self.assertIn('productId:', response.json()['error'])
        response = self.post_json(
            'stock_records',
            {'productId': self.essence.pk, 'quantity': -5, 'recordDate': '2024-05-01'},
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn('quantity:', response.json()['error'])

    def test_list_filters_and_order(self) -> None:
        self._record(self.mazout, date(2024, 5, 1))
        self._record(self.essence, date(2024, 5, 1))
        self._record(self.essence, date(2024, 5, 2))
        self._record(self.essence, date(2024, 4, 1))

        response = self.client.get(self.url('stock_records'), {'startDate': '2024-05-01', 'endDate': '2024-05-31'})
        data = response.json()['data']
        self.assertEqual(
            [(item['recordDate'], item['product']['name']) for item in data],
            [
                ('2024-05-02', 'Essence (Gasoline)'),
                ('2024-05-01', 'Essence (Gasoline)'),
                ('2024-05-01', 'Mazout (Diesel)'),
            ],
        )

        response = self.client.get(self.url('stock_records'), {'date': '2024-05-01', 'productId': self.mazout.pk})
        self.assertEqual(response.json()['total'], 1)

    def test_update_notes_only(self) -> None:
        record = self._record(self.essence, date(2024, 5, 1))
        response = self.patch_json('stock_record_detail', record.pk, {'notes': 'Recounted'})
        self.assertEqual(response.status_code, 200)
        record.refresh_from_db()
        self.assertEqual(record.notes, 'Recounted')
        self.assertEqual(record.record_date, date(2024, 5, 1))

    def test_moving_onto_an_occupied_date(self) -> None:
        self._record(self.essence, date(2024, 5, 2))
        record = self._record(self.essence, date(2024, 5, 1))
        response = self.patch_json('stock_record_detail', record.pk, {'recordDate': '2024-05-02'})
        self.assertEqual(response.status_code, 400)
        self.assertIn('A stock record already exists for this product and date', response.json()['error'])

        response = self.patch_json('stock_record_detail', record.pk, {'recordDate': '2024-05-03'})
        self.assertEqual(response.status_code, 200)

    def test_missing_record(self) -> None:
        response = self.patch_json('stock_record_detail', 999, {'notes': 'x'})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['error'], 'Stock record not found')

    def test_delete(self) -> None:
        record = self._record(self.essence, date(2024, 5, 1))
        response = self.delete('stock_record_detail', record.pk)
        self.assertEqual(response.json(), {'message': 'Stock record deleted successfully'})
        self.assertFalse(StockRecord.objects.exists())
