"""Store models: cart lines, orders and order lines."""

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


class CartItem(models.Model):
    """One product in a user's cart. Unique per (user, product)."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="cart_items",
    )
    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.CASCADE,
        related_name="cart_items",
    )
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    added_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["added_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "product"],
                name="store_cartitem_unique_user_product",
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="store_cartitem_quantity_positive",
            ),
        ]

    def __str__(self):
        return f"{self.user_id} - {self.product_id} x{self.quantity}"

    @property
    def line_total(self):
        return self.product.price * self.quantity

    @property
    def is_available(self) -> bool:
        return self.product.is_active and self.product.stock_quantity >= self.quantity


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    PROCESSING = "processing", "Processing"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"
    RETURNED = "returned", "Returned"


CANCELLABLE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED})


class Order(models.Model):
    """A completed checkout.

    Immutable after creation except for ``status``, the payment fields and
    ``updated_at``.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="orders",
    )
    order_number = models.CharField(max_length=50, unique=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
        db_index=True,
    )

    # Money
    subtotal = models.DecimalField(max_digits=18, decimal_places=2)
    shipping_cost = models.DecimalField(max_digits=18, decimal_places=2)
    tax_amount = models.DecimalField(max_digits=18, decimal_places=2)
    total_amount = models.DecimalField(max_digits=18, decimal_places=2)

    # Shipping
    shipping_address = models.CharField(max_length=500)
    shipping_city = models.CharField(max_length=100)
    shipping_postal_code = models.CharField(max_length=20, blank=True)
    shipping_phone = models.CharField(max_length=20, blank=True)

    # Payment
    payment_method = models.CharField(max_length=50, blank=True)
    is_paid = models.BooleanField(default=False)
    paid_at = models.DateTimeField(null=True, blank=True)

    notes = models.CharField(max_length=1000, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(subtotal__gte=0)
                    & models.Q(shipping_cost__gte=0)
                    & models.Q(tax_amount__gte=0)
                    & models.Q(total_amount__gte=0)
                ),
                name="store_order_amounts_non_negative",
            ),
        ]

    def __str__(self):
        return self.order_number

    @property
    def can_be_cancelled(self) -> bool:
        return self.status in CANCELLABLE_STATUSES

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items.all())


class OrderItem(models.Model):
    """Snapshot of a purchased product, captured by value at checkout.

    ``product`` is kept only so cancellation can restore stock; name, SKU
    and price are copies and never follow later catalog edits.
    """

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_items",
    )
    product_name = models.CharField(max_length=200)
    product_sku = models.CharField(max_length=50, blank=True)
    unit_price = models.DecimalField(max_digits=18, decimal_places=2)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    line_total = models.DecimalField(max_digits=18, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.quantity}x {self.product_name}"
