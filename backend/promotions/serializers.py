from rest_framework import serializers

from .models import Promotion


class GiftSelectionSerializer(serializers.Serializer):
    item_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1)


class ApplyPromotionSerializer(serializers.Serializer):
    promotion_id = serializers.IntegerField()
    selected_gifts = GiftSelectionSerializer(many=True, required=False, default=list)


class PromotionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Promotion
        fields = [
            "id",
            "code",
            "name",
            "description",
            "promotion_type",
            "discount_value",
            "min_order_value",
            "max_discount",
            "buy_quantity",
            "get_quantity",
            "require_same_item",
            "gift_items",
            "start_date",
            "end_date",
            "max_total_usage",
            "max_usage_per_customer",
            "current_total_usage",
            "is_active",
        ]
        read_only_fields = fields


class PromotionAvailabilitySerializer(serializers.Serializer):
    """Shape of one row of the promotion picker."""

    promotion = PromotionSerializer(read_only=True)
    can_apply = serializers.BooleanField(read_only=True)
    reason = serializers.CharField(read_only=True, allow_null=True)
