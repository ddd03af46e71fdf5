from django.contrib import admin

from .models import CreditPackage, PackageOrder, Transaction


@admin.register(CreditPackage)
class CreditPackageAdmin(admin.ModelAdmin):
    list_display = ('name', 'credits', 'price', 'is_active')
    list_filter = ('is_active',)


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ('user', 'type', 'amount', 'balance_after', 'created_at')
    list_filter = ('type',)
    search_fields = ('user__username', 'idempotency_key')
    readonly_fields = ('created_at',)


@admin.register(PackageOrder)
class PackageOrderAdmin(admin.ModelAdmin):
    list_display = ('order_id', 'user', 'package', 'amount', 'status', 'created_at')
    list_filter = ('status',)
    search_fields = ('order_id', 'payment_id', 'user__username')
