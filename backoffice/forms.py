"""Forms used by the back-office JSON API.

The API accepts camelCase JSON bodies (``blockShiftId``, ``saleUnitPrice``)
while the models use snake_case field names.  Every form declares a
``wire_fields`` mapping from the JSON key to its own field name and is
bound through :meth:`WireFormMixin.from_payload`, which also supports
partial updates by pre-filling the form from an existing instance.  The
forms encapsulate the server-side validation rules for their models, so
views only have to check ``is_valid()`` and report ``error_message()``.
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from django import forms
from django.core.exceptions import NON_FIELD_ERRORS, ValidationError
from django.forms.models import model_to_dict

from .http import form_error_message, payload_to_form_data
from .models import (
    Block,
    BlockShift,
    Cashier,
    IndexReading,
    Price,
    Product,
    Shift,
    Stock,
    StockRecord,
)

_CLOCK_PATTERN = re.compile(r'^\d{2}:\d{2}:\d{2}$')


class WireFormMixin:
    """Bind forms from camelCase JSON payloads and flatten their errors."""

    wire_fields: Mapping[str, str] = {}

    @classmethod
    def to_form_data(cls, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """Translate the JSON keys present in ``payload`` to form field names."""

        return payload_to_form_data(payload, cls.wire_fields)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], instance: Any = None, **kwargs: Any):
        """Bind the form to ``payload``.

        When ``instance`` is given the form is pre-filled with its current
        values so only the keys present in the payload are changed.
        """

        data = cls.to_form_data(payload)
        if instance is not None:
            current = model_to_dict(instance, fields=list(cls.wire_fields.values()))
            current.update(data)
            data = current
            kwargs['instance'] = instance
        return cls(data, **kwargs)

    def error_message(self) -> str:
        """Return the form errors as ``field: message`` pairs keyed by wire name."""

        return form_error_message(self, self.wire_fields)


class ClockTimeField(forms.TimeField):
    """Time of day given strictly as ``HH:MM:SS``."""

    default_error_messages = {
        'invalid': 'Enter a time in HH:MM:SS format.',
    }

    def __init__(self, **kwargs: Any) -> None:
        kwargs.setdefault('input_formats', ['%H:%M:%S'])
        super().__init__(**kwargs)

    def to_python(self, value: Any):
        if isinstance(value, str) and value.strip() and not _CLOCK_PATTERN.match(value.strip()):
            raise ValidationError(self.error_messages['invalid'], code='invalid')
        return super().to_python(value)


class RowChoiceField(forms.ModelChoiceField):
    """Foreign key given as a whole-number id; ``1.9`` or ``true`` is not ``1``."""

    def to_python(self, value: Any):
        if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
            raise ValidationError(self.error_messages['invalid_choice'], code='invalid_choice')
        if isinstance(value, str) and value.strip() and not value.strip().isdigit():
            raise ValidationError(self.error_messages['invalid_choice'], code='invalid_choice')
        return super().to_python(value)


class WireDateField(forms.DateField):
    """Calendar date given as ``YYYY-MM-DD`` or as a full ISO-8601 timestamp."""

    def to_python(self, value: Any):
        if isinstance(value, str) and len(value.strip()) > 10 and value.strip()[10] in "T ":
            value = value.strip()[:10]
        return super().to_python(value)


class ProductForm(WireFormMixin, forms.ModelForm):
    """Create or edit a fuel product."""

    wire_fields = {'name': 'name', 'description': 'description'}

    class Meta:
        model = Product
        fields = ['name', 'description']
        error_messages = {
            'name': {'unique': 'A product with this name already exists.'},
        }


class BlockForm(WireFormMixin, forms.ModelForm):
    wire_fields = {'name': 'name'}

    class Meta:
        model = Block
        fields = ['name']


class CashierForm(WireFormMixin, forms.ModelForm):
    wire_fields = {'name': 'name', 'email': 'email', 'phone': 'phone'}

    class Meta:
        model = Cashier
        fields = ['name', 'email', 'phone']


class ShiftForm(WireFormMixin, forms.ModelForm):
    """Create or edit a shift; times are exchanged as ``HH:MM:SS`` strings."""

    wire_fields = {'name': 'name', 'startTime': 'start_time', 'endTime': 'end_time'}

    start_time = ClockTimeField()
    end_time = ClockTimeField()

    class Meta:
        model = Shift
        fields = ['name', 'start_time', 'end_time']


class BlockShiftForm(WireFormMixin, forms.ModelForm):
    """Schedule a cashier on a block for a shift and date."""

    wire_fields = {
        'blockId': 'block',
        'shiftId': 'shift',
        'cashierId': 'cashier',
        'date': 'date',
    }

    date = WireDateField()

    class Meta:
        model = BlockShift
        fields = ['block', 'shift', 'cashier', 'date']
        field_classes = {'block': RowChoiceField, 'shift': RowChoiceField, 'cashier': RowChoiceField}
        error_messages = {
            NON_FIELD_ERRORS: {
                'unique_together': (
                    'A block shift with this combination of block, shift, '
                    'cashier, and date already exists'
                ),
            },
            'block': {'invalid_choice': 'Block not found'},
            'shift': {'invalid_choice': 'Shift not found'},
            'cashier': {'invalid_choice': 'Cashier not found'},
        }


class IndexReadingForm(WireFormMixin, forms.ModelForm):
    """Record the opening and closing pump index for a product.

    The pump counter runs down during a shift so ``start_index`` must be
    strictly greater than ``end_index``.  When only the closing index is
    edited the message names that side.
    """

    wire_fields = {
        'blockShiftId': 'block_shift',
        'productId': 'product',
        'startIndex': 'start_index',
        'endIndex': 'end_index',
    }

    class Meta:
        model = IndexReading
        fields = ['block_shift', 'product', 'start_index', 'end_index']
        field_classes = {'block_shift': RowChoiceField, 'product': RowChoiceField}
        error_messages = {
            NON_FIELD_ERRORS: {
                'unique_together': (
                    'Index already exists for this block shift and product. '
                    'Use PATCH to update.'
                ),
            },
            'block_shift': {'invalid_choice': 'Block shift not found'},
            'product': {'invalid_choice': 'Product not found'},
        }

    def clean(self) -> Dict[str, Any]:
        cleaned_data = super().clean()
        start = cleaned_data.get('start_index')
        end = cleaned_data.get('end_index')
        if start is None or end is None or start > end:
            return cleaned_data
        if 'end_index' in self.changed_data and 'start_index' not in self.changed_data:
            self.add_error(None, 'End index must be lower than start index')
        else:
            self.add_error(None, 'Start index must be higher than end index')
        return cleaned_data


class IndexReadingUpdateForm(IndexReadingForm):
    """Edit the readings of an existing index; its pump and product are fixed."""

    wire_fields = {'startIndex': 'start_index', 'endIndex': 'end_index'}

    class Meta(IndexReadingForm.Meta):
        fields = ['start_index', 'end_index']


class SalesComputeForm(WireFormMixin, forms.Form):
    wire_fields = {'blockShiftId': 'block_shift_id', 'date': 'date'}

    block_shift_id = forms.IntegerField(min_value=1)
    date = WireDateField()


class StockForm(WireFormMixin, forms.ModelForm):
    wire_fields = {'productId': 'product', 'quantity': 'quantity'}

    class Meta:
        model = Stock
        fields = ['product', 'quantity']
        field_classes = {'product': RowChoiceField}
        error_messages = {
            'product': {
                'invalid_choice': 'Product not found',
                'unique': 'Stock already exists for this product. Use PATCH to update.',
            },
        }


class StockUpdateForm(StockForm):
    wire_fields = {'quantity': 'quantity'}

    class Meta(StockForm.Meta):
        fields = ['quantity']


class StockRecordForm(WireFormMixin, forms.ModelForm):
    """Create a dated stock snapshot; one per product and day."""

    wire_fields = {
        'productId': 'product',
        'quantity': 'quantity',
        'recordDate': 'record_date',
        'notes': 'notes',
    }

    record_date = WireDateField()

    class Meta:
        model = StockRecord
        fields = ['product', 'quantity', 'record_date', 'notes']
        field_classes = {'product': RowChoiceField}
        error_messages = {
            NON_FIELD_ERRORS: {
                'unique_together': (
                    'Stock record already exists for this product and date. '
                    'Use PATCH to update.'
                ),
            },
            'product': {'invalid_choice': 'Product not found'},
        }


class StockRecordUpdateForm(StockRecordForm):
    """Edit a stock snapshot; moving it onto an occupied date is refused."""

    wire_fields = {'quantity': 'quantity', 'recordDate': 'record_date', 'notes': 'notes'}

    class Meta(StockRecordForm.Meta):
        fields = ['quantity', 'record_date', 'notes']

    def clean_record_date(self):
        record_date = self.cleaned_data['record_date']
        conflict = (
            StockRecord.objects.filter(product_id=self.instance.product_id, record_date=record_date)
            .exclude(pk=self.instance.pk)
            .exists()
        )
        if conflict:
            raise ValidationError('A stock record already exists for this product and date')
        return record_date


class PriceForm(WireFormMixin, forms.ModelForm):
    wire_fields = {'productId': 'product', 'saleUnitPrice': 'sale_unit_price'}

    class Meta:
        model = Price
        fields = ['product', 'sale_unit_price']
        field_classes = {'product': RowChoiceField}
        error_messages = {
            'product': {
                'invalid_choice': 'Product not found',
                'unique': 'Price already exists for this product. Use PATCH to update.',
            },
        }


class PriceUpdateForm(WireFormMixin, forms.Form):
    wire_fields = {'saleUnitPrice': 'sale_unit_price'}

    sale_unit_price = forms.DecimalField(max_digits=10, decimal_places=3, min_value=Decimal('0.001'))


class ChartPeriodForm(forms.Form):
    """Month/year selector for the dashboard charts; both default to now."""

    month = forms.IntegerField(min_value=1, max_value=12, required=False)
    year = forms.IntegerField(min_value=1970, max_value=9999, required=False)


class ReportTotalsForm(WireFormMixin, forms.Form):
    wire_fields = {
        'date': 'date',
        'totalEssence': 'total_essence',
        'totalMazout': 'total_mazout',
        'totalRevenue': 'total_revenue',
    }

    date = forms.CharField()
    total_essence = forms.FloatField()
    total_mazout = forms.FloatField()
    total_revenue = forms.FloatField()


class ReportExportForm(WireFormMixin, forms.Form):
    """Validate a daily report export request.

    ``pdf`` yields a printable HTML document, ``excel`` a CSV file and
    ``xlsx`` a native workbook.
    """

    FORMAT_CHOICES = [('pdf', 'PDF (printable HTML)'), ('excel', 'Excel (CSV)'), ('xlsx', 'Excel workbook')]

    wire_fields = {'date': 'date', 'format': 'format'}

    date = WireDateField()
    format = forms.ChoiceField(choices=FORMAT_CHOICES)

    def __init__(self, *args: Any, totals: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.totals_form = ReportTotalsForm.from_payload(totals) if isinstance(totals, Mapping) else None

    def clean(self) -> Dict[str, Any]:
        cleaned_data = super().clean()
        if self.totals_form is None:
            raise ValidationError('data: This field is required.')
        if not self.totals_form.is_valid():
            raise ValidationError(f"data: {self.totals_form.error_message()}")
        cleaned_data['data'] = self.totals_form.cleaned_data
        return cleaned_data
