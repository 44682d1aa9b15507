from rest_framework import serializers

from promotions.serializers import GiftSelectionSerializer
from .models import Order, OrderItem


# --- Input records -------------------------------------------------------


class ToppingInputSerializer(serializers.Serializer):
    item_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1, default=1)


class OrderItemInputSerializer(serializers.Serializer):
    item_id = serializers.IntegerField()
    combo_id = serializers.IntegerField(required=False, allow_null=True)
    quantity = serializers.IntegerField(min_value=1, default=1)
    customization = serializers.JSONField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    attached_toppings = ToppingInputSerializer(many=True, required=False, default=list)


class CreateOrderSerializer(serializers.Serializer):
    table_id = serializers.IntegerField(required=False, allow_null=True)
    customer_id = serializers.IntegerField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    items = OrderItemInputSerializer(many=True, required=False, default=list)


class UpdateOrderSerializer(serializers.Serializer):
    customer_id = serializers.IntegerField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class UpdateOrderItemSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1, required=False)
    customization = serializers.JSONField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("Nothing to update.")
        return attrs


class ReduceItemSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class UpdateItemStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderItem.ItemStatus.choices)
    quantity = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class CheckoutSerializer(serializers.Serializer):
    paid_amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)
    payment_method = serializers.ChoiceField(
        choices=Order.PaymentMethod.choices, default=Order.PaymentMethod.CASH
    )
    promotion_id = serializers.IntegerField(required=False, allow_null=True)
    selected_gifts = GiftSelectionSerializer(many=True, required=False, default=list)


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class TransferTableSerializer(serializers.Serializer):
    table_id = serializers.IntegerField()


class MergeOrdersSerializer(serializers.Serializer):
    source_order_id = serializers.IntegerField()
    target_order_id = serializers.IntegerField()

    def validate(self, attrs):
        if attrs["source_order_id"] == attrs["target_order_id"]:
            raise serializers.ValidationError("An order cannot be merged into itself.")
        return attrs


class SplitLineSerializer(serializers.Serializer):
    order_item_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1, required=False, allow_null=True)


class SplitOrderSerializer(serializers.Serializer):
    table_id = serializers.IntegerField(required=False, allow_null=True)
    items = SplitLineSerializer(many=True)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("Select at least one item to split.")
        ids = [line["order_item_id"] for line in value]
        if len(ids) != len(set(ids)):
            raise serializers.ValidationError("Each item can be selected only once.")
        return value


# --- Snapshots -----------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    toppings = serializers.SerializerMethodField()

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "item",
            "combo",
            "parent_item",
            "name",
            "quantity",
            "unit_price",
            "total_price",
            "status",
            "is_topping",
            "is_gift",
            "customization",
            "notes",
            "cancel_reason",
            "canceled_at",
            "created_at",
            "toppings",
        ]
        read_only_fields = fields

    def get_toppings(self, obj):
        return OrderItemSerializer(obj.toppings.all().order_by("id"), many=True).data


class OrderSerializer(serializers.ModelSerializer):
    items = serializers.SerializerMethodField()
    table_name = serializers.CharField(source="table.name", read_only=True, default=None)
    customer_name = serializers.CharField(source="customer.name", read_only=True, default=None)
    promotion_code = serializers.CharField(source="promotion.code", read_only=True, default=None)

    class Meta:
        model = Order
        fields = [
            "id",
            "code",
            "table",
            "table_name",
            "customer",
            "customer_name",
            "staff",
            "status",
            "payment_status",
            "payment_method",
            "subtotal",
            "discount_amount",
            "total_amount",
            "paid_amount",
            "change_amount",
            "promotion",
            "promotion_code",
            "notes",
            "created_at",
            "updated_at",
            "completed_at",
            "items",
        ]
        read_only_fields = fields

    def get_items(self, obj):
        # Top-level lines only; toppings are nested under their item
        lines = obj.items.filter(parent_item__isnull=True).order_by("id")
        return OrderItemSerializer(lines, many=True).data
