"""Django admin configuration for back-office models."""

from django.contrib import admin

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


class PriceHistoryInline(admin.TabularInline):
    """Read-only audit trail shown on the price page."""
    model = PriceHistory
    extra = 0
    can_delete = False
    readonly_fields = ('old_price', 'new_price', 'change_date')


class IndexReadingInline(admin.TabularInline):
    model = IndexReading
    extra = 0


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ('name', 'description', 'updated_at')
    search_fields = ('name',)


@admin.register(Block)
class BlockAdmin(admin.ModelAdmin):
    list_display = ('name', 'created_at')
    search_fields = ('name',)


@admin.register(Cashier)
class CashierAdmin(admin.ModelAdmin):
    list_display = ('name', 'email', 'phone')
    search_fields = ('name', 'email')


@admin.register(Shift)
class ShiftAdmin(admin.ModelAdmin):
    list_display = ('name', 'start_time', 'end_time')


@admin.register(BlockShift)
class BlockShiftAdmin(admin.ModelAdmin):
    list_display = ('date', 'block', 'shift', 'cashier')
    list_filter = ('date', 'block', 'shift')
    date_hierarchy = 'date'
    inlines = (IndexReadingInline,)


@admin.register(IndexReading)
class IndexReadingAdmin(admin.ModelAdmin):
    list_display = ('block_shift', 'product', 'start_index', 'end_index')
    list_filter = ('product',)


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = ('date', 'block_shift', 'product', 'litres_sold', 'revenue')
    list_filter = ('date', 'product')
    date_hierarchy = 'date'


@admin.register(Stock)
class StockAdmin(admin.ModelAdmin):
    list_display = ('product', 'quantity', 'status', 'updated_at')


@admin.register(StockRecord)
class StockRecordAdmin(admin.ModelAdmin):
    list_display = ('record_date', 'product', 'quantity', 'notes')
    list_filter = ('product', 'record_date')
    date_hierarchy = 'record_date'


@admin.register(Price)
class PriceAdmin(admin.ModelAdmin):
    list_display = ('product', 'sale_unit_price', 'updated_at')
    inlines = (PriceHistoryInline,)


@admin.register(PriceHistory)
class PriceHistoryAdmin(admin.ModelAdmin):
    list_display = ('price', 'old_price', 'new_price', 'change_date')
    list_filter = ('price__product',)
