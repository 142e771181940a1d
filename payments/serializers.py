from rest_framework import serializers


class VerifyPaymentSerializer(serializers.Serializer):
    """Gateway callback fields. Presence is checked by the service so a
    partial payload gets the ``incomplete_payload`` error code."""

    payment_id = serializers.CharField(required=False, allow_blank=True)
    order_id = serializers.CharField(required=False, allow_blank=True)
    gateway_order_id = serializers.CharField(required=False, allow_blank=True, max_length=64)
    gateway_payment_id = serializers.CharField(required=False, allow_blank=True, max_length=64)
    gateway_signature = serializers.CharField(required=False, allow_blank=True, max_length=128)

    def to_service_kwargs(self) -> dict:
        return {name: self.validated_data.get(name) for name in self.fields}
