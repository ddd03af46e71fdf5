from django.urls import path

from .views import (
    BalanceView,
    CreateOrderView,
    OrderListView,
    PackageListView,
    TransactionListView,
    VerifyPaymentView,
)

urlpatterns = [
    path('packages/', PackageListView.as_view(), name='credit-packages'),
    path('balance/', BalanceView.as_view(), name='credit-balance'),
    path('transactions/', TransactionListView.as_view(), name='credit-transactions'),
    path('order/', CreateOrderView.as_view(), name='credit-order'),
    path('orders/', OrderListView.as_view(), name='credit-orders'),
    path('verify/', VerifyPaymentView.as_view(), name='credit-verify'),
]
