from decimal import Decimal

from django.test import TestCase

from backoffice.models import Price, PriceHistory, Product
from backoffice.services.pricing import change_price, create_price

from .utils import JsonApiMixin


class PriceApiTest(JsonApiMixin, TestCase):
    def setUp(self) -> None:
        self.essence = Product.objects.create(name='Essence (Gasoline)')
        self.mazout = Product.objects.create(name='Mazout (Diesel)')

    def test_create_writes_initial_history(self) -> None:
        response = self.post_json('prices', {'productId': self.essence.pk, 'saleUnitPrice': 1.25})
        self.assertEqual(response.status_code, 201)
        payload = response.json()
        self.assertEqual(payload['saleUnitPrice'], '1.250')
        self.assertEqual(payload['product']['name'], 'Essence (Gasoline)')
        self.assertEqual(len(payload['priceHistory']), 1)
        self.assertIsNone(payload['priceHistory'][0]['oldPrice'])
        self.assertEqual(payload['priceHistory'][0]['newPrice'], '1.250')

    def test_unknown_product(self) -> None:
        response = self.post_json('prices', {'productId': 999, 'saleUnitPrice': 1.25})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Product not found')

    def test_second_price_for_product(self) -> None:
        create_price(self.essence, Decimal('1.250'))
        response = self.post_json('prices', {'productId': self.essence.pk, 'saleUnitPrice': 1.3})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Price already exists for this product. Use PATCH to update.')

    def test_price_must_be_positive(self) -> None:
        for value in (0, -1):
            response = self.post_json('prices', {'productId': self.essence.pk, 'saleUnitPrice': value})
            self.assertEqual(response.status_code, 400)
            self.assertIn('saleUnitPrice:', response.json()['error'])
        self.assertFalse(Price.objects.exists())
        self.assertFalse(PriceHistory.objects.exists())

    def test_update_appends_history(self) -> None:
        price = create_price(self.essence, Decimal('1.250'))
        response = self.patch_json('price_detail', price.pk, {'saleUnitPrice': '1.300'})
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload['saleUnitPrice'], '1.300')
        latest = payload['priceHistory'][0]
        self.assertEqual(latest['oldPrice'], '1.250')
        self.assertEqual(latest['newPrice'], '1.300')
        self.assertEqual(price.history.count(), 2)

    def test_update_validation_and_missing(self) -> None:
        price = create_price(self.essence, Decimal('1.250'))
        response = self.patch_json('price_detail', price.pk, {'saleUnitPrice': 0})
        self.assertEqual(response.status_code, 400)
        price.refresh_from_db()
        self.assertEqual(price.sale_unit_price, Decimal('1.250'))
        self.assertEqual(price.history.count(), 1)

        response = self.patch_json('price_detail', 999, {'saleUnitPrice': 1})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['error'], 'Price not found')

    def test_list_orders_by_product_and_limits_history(self) -> None:
        mazout_price = create_price(self.mazout, Decimal('1.100'))
        essence_price = create_price(self.essence, Decimal('1.000'))
        for step in range(1, 7):
            change_price(essence_price, Decimal('1.000') + Decimal(step) / 100)

        response = self.client.get(self.url('prices'))
        self.assertEqual(response.status_code, 200)
        data = response.json()['data']
        self.assertEqual([item['id'] for item in data], [essence_price.pk, mazout_price.pk])
        history = data[0]['priceHistory']
        self.assertEqual(len(history), 5)
        self.assertEqual(history[0]['newPrice'], '1.060')
        self.assertEqual(history[0]['oldPrice'], '1.050')

    def test_fractional_product_id_is_rejected(self) -> None:
        for value in (self.essence.pk + 0.9, True, f'{self.essence.pk}a'):
            response = self.post_json('prices', {'productId': value, 'saleUnitPrice': 1.25})
            self.assertEqual(response.status_code, 400, value)
            self.assertEqual(response.json()['error'], 'Invalid product ID')
        self.assertFalse(Price.objects.exists())

    def test_delete_removes_history(self) -> None:
        price = create_price(self.essence, Decimal('1.250'))
        response = self.delete('price_detail', price.pk)
        self.assertEqual(response.status_code, 204)
        self.assertFalse(Price.objects.exists())
        self.assertFalse(PriceHistory.objects.exists())


class PriceHistoryApiTest(JsonApiMixin, TestCase):
    def test_newest_first_and_filtered_by_product(self) -> None:
        essence = Product.objects.create(name='Essence (Gasoline)')
        mazout = Product.objects.create(name='Mazout (Diesel)')
        essence_price = create_price(essence, Decimal('1.250'))
        create_price(mazout, Decimal('1.150'))
        change_price(essence_price, Decimal('1.300'))

        response = self.client.get(self.url('price_history'))
        self.assertEqual(response.json()['total'], 3)

        response = self.client.get(self.url('price_history'), {'productId': essence.pk})
        data = response.json()['data']
        self.assertEqual([item['newPrice'] for item in data], ['1.300', '1.250'])
        self.assertEqual(data[0]['price']['product']['name'], 'Essence (Gasoline)')


class ChangePriceServiceTest(TestCase):
    def test_old_price_comes_from_the_stored_row(self) -> None:
        essence = Product.objects.create(name='Essence (Gasoline)')
        price = create_price(essence, Decimal('1.000'))
        first = Price.objects.get(pk=price.pk)
        second = Price.objects.get(pk=price.pk)

        change_price(first, Decimal('2.000'))
        returned = change_price(second, Decimal('3.000'))

        self.assertEqual(returned.sale_unit_price, Decimal('3.000'))
        chain = [
            (entry.old_price, entry.new_price)
            for entry in PriceHistory.objects.filter(price=price).order_by('pk')
        ]
        self.assertEqual(
            chain,
            [
                (None, Decimal('1.000')),
                (Decimal('1.000'), Decimal('2.000')),
                (Decimal('2.000'), Decimal('3.000')),
            ],
        )
        price.refresh_from_db()
        self.assertEqual(price.sale_unit_price, Decimal('3.000'))
