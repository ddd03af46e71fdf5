import logging
from decimal import Decimal, ROUND_HALF_UP

import razorpay
from django.conf import settings
from django.db import transaction
from django.utils import timezone
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from razorpay.errors import BadRequestError, GatewayError, ServerError, SignatureVerificationError

from .models import CreditPackage, PackageOrder, Transaction
from .serializers import (
    CreateOrderSerializer,
    CreditPackageSerializer,
    PackageOrderSerializer,
    TransactionSerializer,
    VerifyPaymentSerializer,
)
from .services import credit_credits

logger = logging.getLogger(__name__)

RECENT_TRANSACTIONS = 20
RAZORPAY_ERRORS = (BadRequestError, GatewayError, ServerError)


def _to_paise(amount_rupees: Decimal) -> int:
    # Razorpay needs integer paise
    return int((amount_rupees * Decimal('100')).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def _razorpay_client():
    if not settings.RAZORPAY_KEY_ID or not settings.RAZORPAY_KEY_SECRET:
        return None
    return razorpay.Client(auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET))


class PackageListView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        packages = CreditPackage.objects.filter(is_active=True).order_by('credits')
        return Response(CreditPackageSerializer(packages, many=True).data)


class BalanceView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        request.user.refresh_from_db(fields=['credits'])
        return Response({"credits": request.user.credits})


class TransactionListView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        entries = Transaction.objects.filter(user=request.user)[:RECENT_TRANSACTIONS]
        return Response(TransactionSerializer(entries, many=True).data)


class OrderListView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        orders = PackageOrder.objects.filter(user=request.user).order_by('-created_at')[:RECENT_TRANSACTIONS]
        return Response(PackageOrderSerializer(orders, many=True).data)


class CreateOrderView(APIView):
    """
    Body: { "package_id": <int> }
    The price comes from the package row; any client amount is ignored.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = CreateOrderSerializer(data=request.data, context={})
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        package = serializer.context['package']

        client = _razorpay_client()
        if client is None:
            return Response(
                {"error": "Payments are not configured", "code": "payments_unavailable"},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )

        user = request.user
        currency = settings.CREDIT_CURRENCY
        order_payload = {
            "amount": _to_paise(package.price),
            "currency": currency,
            "receipt": f"credits-{user.id}-{package.id}-{int(timezone.now().timestamp())}",
            "payment_capture": 1,
            "notes": {"package_id": str(package.id), "user_id": str(user.id)},
        }
        try:
            rzp_order = client.order.create(order_payload)
        except RAZORPAY_ERRORS as e:
            logger.error(f"Razorpay order creation failed for user {user.id}: {e}")
            return Response(
                {"error": f"Failed to create order: {e}", "code": "payment_gateway_error"},
                status=status.HTTP_502_BAD_GATEWAY,
            )

        PackageOrder.objects.create(
            user=user,
            package=package,
            order_id=rzp_order.get("id"),
            amount=package.price,
            currency=rzp_order.get("currency", currency),
            notes=f"receipt={rzp_order.get('receipt')}",
        )
        return Response(
            {
                "order_id": rzp_order.get("id"),
                "amount": rzp_order.get("amount"),  # paise
                "currency": rzp_order.get("currency", currency),
                "key_id": settings.RAZORPAY_KEY_ID,
            },
            status=status.HTTP_201_CREATED,
        )


class VerifyPaymentView(APIView):
    """
    Confirms a Razorpay payment and credits the package once. Replays of an
    already verified order return the current balance without crediting again.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = VerifyPaymentSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        order_id = serializer.validated_data['razorpay_order_id']
        payment_id = serializer.validated_data['razorpay_payment_id']
        signature = serializer.validated_data['razorpay_signature']
        user = request.user

        client = _razorpay_client()
        if client is None:
            return Response(
                {"error": "Payments are not configured", "code": "payments_unavailable"},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )

        with transaction.atomic():
            order = (
                PackageOrder.objects.select_for_update()
                .select_related('package')
                .filter(order_id=order_id, user=user)
                .first()
            )
            if order is None:
                return Response(
                    {"error": "Payment order not found", "code": "not_found"},
                    status=status.HTTP_404_NOT_FOUND,
                )

            if order.status == PackageOrder.STATUS_PAID:
                user.refresh_from_db(fields=['credits'])
                return Response({"detail": "Already verified", "credits": user.credits}, status=status.HTTP_200_OK)

            try:
                client.utility.verify_payment_signature({
                    'razorpay_order_id': order_id,
                    'razorpay_payment_id': payment_id,
                    'razorpay_signature': signature,
                })
            except SignatureVerificationError as e:
                logger.warning(f"Signature verification failed for order {order_id}: {e}")
                order.status = PackageOrder.STATUS_FAILED
                order.payment_id = payment_id
                order.notes = f"{order.notes}\nverify_error={e}"
                order.save(update_fields=['status', 'payment_id', 'notes', 'updated_at'])
                return Response(
                    {"error": "Signature verification failed", "code": "invalid_signature"},
                    status=status.HTTP_400_BAD_REQUEST,
                )

            order.status = PackageOrder.STATUS_PAID
            order.payment_id = payment_id
            order.save(update_fields=['status', 'payment_id', 'updated_at'])
            result = credit_credits(
                user,
                order.package.credits,
                description=f"Purchased {order.package.name}",
                idempotency_key=f"razorpay:{order_id}",
            )

        return Response(
            {"credits": result.balance, "transaction": TransactionSerializer(result.entry).data},
            status=status.HTTP_201_CREATED,
        )
