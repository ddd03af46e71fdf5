from rest_framework import serializers

from .models import CreditPackage, PackageOrder, Transaction


class CreditPackageSerializer(serializers.ModelSerializer):
    price = serializers.DecimalField(max_digits=10, decimal_places=2, coerce_to_string=False)

    class Meta:
        model = CreditPackage
        fields = ['id', 'name', 'credits', 'price']


class TransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Transaction
        fields = ['id', 'amount', 'type', 'balance_after', 'description', 'created_at']
        read_only_fields = fields


class CreateOrderSerializer(serializers.Serializer):
    package_id = serializers.IntegerField()

    def validate_package_id(self, value):
        package = CreditPackage.objects.filter(id=value, is_active=True).first()
        if package is None:
            raise serializers.ValidationError("Unknown or inactive credit package.")
        self.context['package'] = package
        return value


class VerifyPaymentSerializer(serializers.Serializer):
    razorpay_order_id = serializers.CharField()
    razorpay_payment_id = serializers.CharField()
    razorpay_signature = serializers.CharField()


class PackageOrderSerializer(serializers.ModelSerializer):
    class Meta:
        model = PackageOrder
        fields = ['order_id', 'package', 'amount', 'currency', 'status', 'created_at']
        read_only_fields = fields
