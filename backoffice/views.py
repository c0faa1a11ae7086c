"""JSON API views for the station back-office.

Each resource exposes a collection view (``GET`` list, ``POST`` create)
and a detail view (``PATCH`` partial update, ``DELETE``).  Input is bound
to the forms in :mod:`backoffice.forms`; anything the client got wrong is
raised as :class:`~backoffice.http.ApiError` and rendered by
:func:`~backoffice.http.api_view`.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from django.db import IntegrityError, transaction
from django.db.models import Model, Prefetch, ProtectedError
from django.http import HttpRequest, HttpResponse, JsonResponse

from .forms import (
    BlockForm,
    BlockShiftForm,
    CashierForm,
    IndexReadingForm,
    IndexReadingUpdateForm,
    PriceForm,
    PriceUpdateForm,
    ProductForm,
    SalesComputeForm,
    ShiftForm,
    StockForm,
    StockRecordForm,
    StockRecordUpdateForm,
    StockUpdateForm,
)
from .http import (
    ApiError,
    api_view,
    get_object_or_404_json,
    paginate,
    paginated_response,
    parse_date_param,
    parse_id,
    parse_int_param,
    parse_json_body,
)
from .models import (
    Block,
    BlockShift,
    Cashier,
    IndexReading,
    Price,
    PriceHistory,
    Product,
    Sale,
    Shift,
    Stock,
    StockRecord,
)
from .serializers import (
    serialize_block,
    serialize_block_shift,
    serialize_cashier,
    serialize_index_reading,
    serialize_price,
    serialize_price_history,
    serialize_product,
    serialize_sale,
    serialize_shift,
    serialize_stock,
    serialize_stock_record,
)
from .services.pricing import change_price, create_price, latest_history
from .services.sales import compute_block_shift_sales

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _save(form, conflict_message: str = 'A conflicting record already exists') -> Model:
    """Validate and save a model form, raising :class:`ApiError` on failure."""

    if not form.is_valid():
        raise ApiError(form.error_message())
    try:
        with transaction.atomic():
            return form.save()
    except IntegrityError:
        raise ApiError(conflict_message) from None


def _delete_or_refuse(instance: Model, label: str) -> None:
    try:
        with transaction.atomic():
            instance.delete()
    except ProtectedError:
        logger.info('Refused to delete %s %s: still referenced', label, instance.pk)
        raise ApiError(f"Cannot delete this {label} because other records still reference it") from None


def _no_content() -> HttpResponse:
    return HttpResponse(status=204)


def _simple_collection(request: HttpRequest, model, form_class, serializer: Callable[..., Dict[str, Any]]):
    if request.method == 'GET':
        items, meta = paginate(model.objects.order_by('pk'), request.GET)
        return paginated_response([serializer(item) for item in items], meta)

    form = form_class.from_payload(parse_json_body(request))
    return JsonResponse(serializer(_save(form)), status=201)


def _simple_detail(request: HttpRequest, pk: str, model, form_class, serializer, label: str):
    instance = get_object_or_404_json(model, pk, label)
    if request.method == 'DELETE':
        _delete_or_refuse(instance, label)
        return _no_content()

    form = form_class.from_payload(parse_json_body(request), instance=instance)
    return JsonResponse(serializer(_save(form)))


# ---------------------------------------------------------------------------
# Products, blocks, cashiers, shifts
# ---------------------------------------------------------------------------


@api_view('GET', 'POST')
def products_collection(request: HttpRequest) -> HttpResponse:
    return _simple_collection(request, Product, ProductForm, serialize_product)


@api_view('PATCH', 'DELETE')
def product_detail(request: HttpRequest, pk: str) -> HttpResponse:
    return _simple_detail(request, pk, Product, ProductForm, serialize_product, 'product')


@api_view('GET', 'POST')
def blocks_collection(request: HttpRequest) -> HttpResponse:
    return _simple_collection(request, Block, BlockForm, serialize_block)


@api_view('PATCH', 'DELETE')
def block_detail(request: HttpRequest, pk: str) -> HttpResponse:
    return _simple_detail(request, pk, Block, BlockForm, serialize_block, 'block')


@api_view('GET', 'POST')
def cashiers_collection(request: HttpRequest) -> HttpResponse:
    return _simple_collection(request, Cashier, CashierForm, serialize_cashier)


@api_view('PATCH', 'DELETE')
def cashier_detail(request: HttpRequest, pk: str) -> HttpResponse:
    return _simple_detail(request, pk, Cashier, CashierForm, serialize_cashier, 'cashier')


@api_view('GET', 'POST')
def shifts_collection(request: HttpRequest) -> HttpResponse:
    return _simple_collection(request, Shift, ShiftForm, serialize_shift)


@api_view('PATCH', 'DELETE')
def shift_detail(request: HttpRequest, pk: str) -> HttpResponse:
    return _simple_detail(request, pk, Shift, ShiftForm, serialize_shift, 'shift')


# ---------------------------------------------------------------------------
# Block shifts
# ---------------------------------------------------------------------------

BLOCK_SHIFT_DUPLICATE = (
    'A block shift with this combination of block, shift, cashier, and date already exists'
)


def _block_shift_queryset():
    readings = IndexReading.objects.select_related('product', 'product__price').order_by('product__name', 'pk')
    return BlockShift.objects.select_related('block', 'shift', 'cashier').prefetch_related(
        Prefetch('readings', queryset=readings)
    )


def _serialize_full_block_shift(block_shift: BlockShift) -> Dict[str, Any]:
    return serialize_block_shift(block_shift, include_relations=True, include_readings=True)


@api_view('GET', 'POST')
def block_shifts_collection(request: HttpRequest) -> HttpResponse:
    """List block shifts filtered by day or date range, or schedule a new one.

    ``startDate`` and ``endDate`` together select an inclusive range and
    take precedence over ``date``.
    """

    if request.method == 'GET':
        params = request.GET
        queryset = _block_shift_queryset()
        start = parse_date_param(params, 'startDate')
        end = parse_date_param(params, 'endDate')
        day = parse_date_param(params, 'date')
        if start and end:
            queryset = queryset.filter(date__gte=start, date__lte=end)
        elif day:
            queryset = queryset.filter(date=day)
        items, meta = paginate(queryset.order_by('-date', 'pk'), params)
        return paginated_response([_serialize_full_block_shift(item) for item in items], meta)

    form = BlockShiftForm.from_payload(parse_json_body(request))
    block_shift = _save(form, BLOCK_SHIFT_DUPLICATE)
    return JsonResponse(_serialize_full_block_shift(_block_shift_queryset().get(pk=block_shift.pk)), status=201)


@api_view('PATCH', 'DELETE')
def block_shift_detail(request: HttpRequest, pk: str) -> HttpResponse:
    block_shift = get_object_or_404_json(BlockShift, pk, 'block shift')
    if request.method == 'DELETE':
        _delete_or_refuse(block_shift, 'block shift')
        logger.info('Deleted block shift %s with its readings and sales', pk)
        return _no_content()

    form = BlockShiftForm.from_payload(parse_json_body(request), instance=block_shift)
    _save(form, BLOCK_SHIFT_DUPLICATE)
    return JsonResponse(_serialize_full_block_shift(_block_shift_queryset().get(pk=block_shift.pk)))


# ---------------------------------------------------------------------------
# Index readings
# ---------------------------------------------------------------------------

INDEX_DUPLICATE = 'Index already exists for this block shift and product. Use PATCH to update.'


def _reading_queryset():
    return IndexReading.objects.select_related(
        'product',
        'block_shift__block',
        'block_shift__shift',
        'block_shift__cashier',
    )


def _serialize_full_reading(reading: IndexReading) -> Dict[str, Any]:
    return serialize_index_reading(reading, include_product=True, include_block_shift=True)


def _create_reading(request: HttpRequest) -> HttpResponse:
    form = IndexReadingForm.from_payload(parse_json_body(request))
    reading = _save(form, INDEX_DUPLICATE)
    return JsonResponse(_serialize_full_reading(_reading_queryset().get(pk=reading.pk)), status=201)


def _reading_filter(params) -> Dict[str, Any]:
    block_shift_id = parse_int_param(params, 'blockShiftId')
    return {'block_shift_id': block_shift_id} if block_shift_id is not None else {}


@api_view('GET', 'POST')
def indexes_collection(request: HttpRequest) -> HttpResponse:
    if request.method == 'POST':
        return _create_reading(request)

    queryset = _reading_queryset().filter(**_reading_filter(request.GET)).order_by('-created_at', '-pk')
    items, meta = paginate(queryset, request.GET)
    return paginated_response([_serialize_full_reading(item) for item in items], meta)


@api_view('GET', 'POST')
def readings_collection(request: HttpRequest) -> HttpResponse:
    """Older listing of index readings, ordered by block shift then product."""

    if request.method == 'POST':
        return _create_reading(request)

    queryset = _reading_queryset().filter(**_reading_filter(request.GET)).order_by('block_shift_id', 'product_id')
    items, meta = paginate(queryset, request.GET)
    return paginated_response([_serialize_full_reading(item) for item in items], meta)


@api_view('PATCH', 'DELETE')
def index_detail(request: HttpRequest, pk: str) -> HttpResponse:
    reading = get_object_or_404_json(_reading_queryset(), pk, 'index')
    if request.method == 'DELETE':
        reading.delete()
        return JsonResponse({'message': 'Index deleted successfully'})

    form = IndexReadingUpdateForm.from_payload(parse_json_body(request), instance=reading)
    _save(form)
    return JsonResponse(_serialize_full_reading(reading))


# ---------------------------------------------------------------------------
# Sales
# ---------------------------------------------------------------------------


@api_view('GET', 'POST')
def sales_collection(request: HttpRequest) -> HttpResponse:
    """List computed sales, or (re)compute the sales of one block shift."""

    if request.method == 'GET':
        params = request.GET
        filters: Dict[str, Any] = {}
        day = parse_date_param(params, 'date')
        if day:
            filters['date'] = day
        block_shift_id = parse_int_param(params, 'blockShiftId')
        if block_shift_id is not None:
            filters['block_shift_id'] = block_shift_id
        queryset = (
            Sale.objects.filter(**filters)
            .select_related('product', 'block_shift__block', 'block_shift__shift', 'block_shift__cashier')
            .order_by('-date', 'pk')
        )
        items, meta = paginate(queryset, params)
        return paginated_response([serialize_sale(item, include_relations=True) for item in items], meta)

    form = SalesComputeForm.from_payload(parse_json_body(request))
    if not form.is_valid():
        raise ApiError(form.error_message())
    block_shift = get_object_or_404_json(BlockShift, form.cleaned_data['block_shift_id'], 'block shift')
    sales = compute_block_shift_sales(block_shift, form.cleaned_data['date'])
    return JsonResponse([serialize_sale(sale) for sale in sales], safe=False, status=201)


# ---------------------------------------------------------------------------
# Stock
# ---------------------------------------------------------------------------


@api_view('GET', 'POST')
def stock_collection(request: HttpRequest) -> HttpResponse:
    if request.method == 'GET':
        queryset = Stock.objects.select_related('product').order_by('product__name', 'pk')
        items, meta = paginate(queryset, request.GET)
        return paginated_response([serialize_stock(item, include_product=True) for item in items], meta)

    form = StockForm.from_payload(parse_json_body(request))
    stock = _save(form, 'Stock already exists for this product. Use PATCH to update.')
    return JsonResponse(serialize_stock(stock, include_product=True), status=201)


@api_view('PATCH', 'DELETE')
def stock_detail(request: HttpRequest, pk: str) -> HttpResponse:
    stock = get_object_or_404_json(Stock.objects.select_related('product'), pk, 'stock')
    if request.method == 'DELETE':
        stock.delete()
        return _no_content()

    form = StockUpdateForm.from_payload(parse_json_body(request), instance=stock)
    return JsonResponse(serialize_stock(_save(form), include_product=True))


# ---------------------------------------------------------------------------
# Stock records
# ---------------------------------------------------------------------------

STOCK_RECORD_DUPLICATE = 'Stock record already exists for this product and date. Use PATCH to update.'


@api_view('GET', 'POST')
def stock_records_collection(request: HttpRequest) -> HttpResponse:
    if request.method == 'GET':
        params = request.GET
        queryset = StockRecord.objects.select_related('product')
        start = parse_date_param(params, 'startDate')
        end = parse_date_param(params, 'endDate')
        day = parse_date_param(params, 'date')
        if start and end:
            queryset = queryset.filter(record_date__gte=start, record_date__lte=end)
        elif day:
            queryset = queryset.filter(record_date=day)
        product_id = parse_int_param(params, 'productId')
        if product_id is not None:
            queryset = queryset.filter(product_id=product_id)
        items, meta = paginate(queryset.order_by('-record_date', 'product__name', 'pk'), params)
        return paginated_response([serialize_stock_record(item, include_product=True) for item in items], meta)

    form = StockRecordForm.from_payload(parse_json_body(request))
    record = _save(form, STOCK_RECORD_DUPLICATE)
    return JsonResponse(serialize_stock_record(record, include_product=True), status=201)


@api_view('PATCH', 'DELETE')
def stock_record_detail(request: HttpRequest, pk: str) -> HttpResponse:
    record = get_object_or_404_json(StockRecord.objects.select_related('product'), pk, 'stock record')
    if request.method == 'DELETE':
        record.delete()
        return JsonResponse({'message': 'Stock record deleted successfully'})

    form = StockRecordUpdateForm.from_payload(parse_json_body(request), instance=record)
    record = _save(form, 'A stock record already exists for this product and date')
    return JsonResponse(serialize_stock_record(record, include_product=True))


# ---------------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------------


def _serialize_price_with_history(price: Price) -> Dict[str, Any]:
    return serialize_price(price, include_product=True, history=latest_history(price))


@api_view('GET', 'POST')
def prices_collection(request: HttpRequest) -> HttpResponse:
    """List current prices with recent history, or set a product's first price."""

    if request.method == 'GET':
        queryset = Price.objects.select_related('product').order_by('product__name', 'pk')
        items, meta = paginate(queryset, request.GET)
        return paginated_response([_serialize_price_with_history(item) for item in items], meta)

    payload = parse_json_body(request)
    product_id = payload.get('productId')
    if product_id is not None:
        product = Product.objects.filter(pk=parse_id(product_id, 'product')).first()
        if product is None:
            raise ApiError('Product not found')
        if Price.objects.filter(product=product).exists():
            raise ApiError('Price already exists for this product. Use PATCH to update.')

    form = PriceForm.from_payload(payload)
    if not form.is_valid():
        raise ApiError(form.error_message())
    try:
        price = create_price(form.cleaned_data['product'], form.cleaned_data['sale_unit_price'])
    except IntegrityError:
        raise ApiError('Price already exists for this product. Use PATCH to update.') from None
    return JsonResponse(_serialize_price_with_history(price), status=201)


@api_view('PATCH', 'DELETE')
def price_detail(request: HttpRequest, pk: str) -> HttpResponse:
    price = get_object_or_404_json(Price.objects.select_related('product'), pk, 'price')
    if request.method == 'DELETE':
        price.delete()
        logger.info('Deleted price %s of product %s', pk, price.product_id)
        return _no_content()

    form = PriceUpdateForm.from_payload(parse_json_body(request))
    if not form.is_valid():
        raise ApiError(form.error_message())
    price = change_price(price, form.cleaned_data['sale_unit_price'])
    return JsonResponse(_serialize_price_with_history(price))


@api_view('GET')
def price_history_collection(request: HttpRequest) -> HttpResponse:
    params = request.GET
    queryset = PriceHistory.objects.select_related('price__product').order_by('-change_date', '-pk')
    product_id: Optional[int] = parse_int_param(params, 'productId')
    if product_id is not None:
        queryset = queryset.filter(price__product_id=product_id)
    items, meta = paginate(queryset, params)
    return paginated_response([serialize_price_history(item, include_price=True) for item in items], meta)
