from django.conf import settings
from django.db import models


class CreditPackage(models.Model):
    name = models.CharField(max_length=100)
    credits = models.PositiveIntegerField()
    price = models.DecimalField(max_digits=10, decimal_places=2)  # in rupees
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['credits']

    def __str__(self):
        return f"{self.name} ({self.credits} credits)"


class Transaction(models.Model):
    TYPE_PURCHASE = 'purchase'
    TYPE_SPEND = 'spend'
    TYPE_CHOICES = [
        (TYPE_PURCHASE, 'Purchase'),
        (TYPE_SPEND, 'Spend'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='credit_transactions')
    # Always positive; the direction is given by `type`.
    amount = models.PositiveIntegerField()
    type = models.CharField(max_length=16, choices=TYPE_CHOICES)
    balance_after = models.IntegerField()
    description = models.CharField(max_length=255, blank=True, default='')
    # Prevents the same purchase or unlock being applied twice
    idempotency_key = models.CharField(max_length=128, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['user', '-created_at']),
        ]

    def __str__(self):
        sign = '+' if self.type == self.TYPE_PURCHASE else '-'
        return f"{self.user_id}: {sign}{self.amount} -> {self.balance_after}"


class PackageOrder(models.Model):
    STATUS_CREATED = 'created'
    STATUS_PAID = 'paid'
    STATUS_FAILED = 'failed'
    STATUS_CHOICES = [
        (STATUS_CREATED, 'Created'),
        (STATUS_PAID, 'Paid'),
        (STATUS_FAILED, 'Failed'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='package_orders')
    package = models.ForeignKey(CreditPackage, on_delete=models.PROTECT, related_name='orders')
    order_id = models.CharField(max_length=100, unique=True)
    payment_id = models.CharField(max_length=100, blank=True, null=True)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    currency = models.CharField(max_length=10, default='INR')
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_CREATED)
    notes = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'status']),
        ]

    def __str__(self):
        return f"{self.user_id} - {self.order_id} - {self.status}"
