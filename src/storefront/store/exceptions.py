"""Store exceptions.

Every failure a cart, checkout or order operation can report is a
``StoreError`` subclass. Each carries a machine-readable ``code``, an HTTP
``status_code`` for the API layer and a ``details`` dict with the values a
client needs to react (offending product, requested vs. available, ...).
"""


class StoreError(Exception):
    """Base class for store domain errors."""

    code = "store_error"
    status_code = 400
    default_message = "Store operation failed"

    def __init__(self, message: str | None = None, **details):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def as_dict(self) -> dict:
        return {"error": self.code, "message": self.message, **self.details}


class InvalidQuantity(StoreError):
    code = "invalid_quantity"
    default_message = "Quantity must be at least 1"


# -----------------
# Not found
# -----------------


class NotFound(StoreError):
    """A referenced entity does not exist (or is not visible to the caller)."""

    code = "not_found"
    status_code = 404
    default_message = "Not found"


class ProductNotFound(NotFound):
    default_message = "Product not found"

    def __init__(self, product_id):
        super().__init__(f"Product {product_id} not found", product_id=product_id)


class CartItemNotFound(NotFound):
    default_message = "Cart item not found"

    def __init__(self, line_id):
        super().__init__(f"Cart item {line_id} not found", line_id=line_id)


class OrderNotFound(NotFound):
    default_message = "Order not found"

    def __init__(self, order_id):
        super().__init__(f"Order {order_id} not found", order_id=order_id)


# -----------------
# Checkout validation
# -----------------


class InsufficientStock(StoreError):
    """Requested quantity exceeds the product's current stock."""

    code = "insufficient_stock"

    def __init__(self, product_id, product_name: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for {product_name}: requested {requested}, available {available}",
            product_id=product_id,
            product_name=product_name,
            requested=requested,
            available=available,
        )


class ProductUnavailable(StoreError):
    """Cart references a product that is no longer active."""

    code = "product_unavailable"

    def __init__(self, product_id, product_name: str = ""):
        label = product_name or f"Product {product_id}"
        super().__init__(
            f"{label} is not available",
            product_id=product_id,
            product_name=product_name,
        )


class EmptyCart(StoreError):
    code = "empty_cart"
    default_message = "Cart is empty"


class ShippingAddressRequired(StoreError):
    code = "shipping_address_required"
    default_message = "Shipping address is required"


# -----------------
# Order lifecycle
# -----------------


class InvalidTransition(StoreError):
    """Illegal order status change."""

    code = "invalid_transition"

    def __init__(self, from_status: str, to_status: str, message: str | None = None):
        super().__init__(
            message or f"Cannot change order status from {from_status} to {to_status}",
            from_status=from_status,
            to_status=to_status,
        )


# -----------------
# Storage
# -----------------


class Conflict(StoreError):
    code = "conflict"
    status_code = 409
    default_message = "Conflicting write"


class OrderNumberConflict(Conflict):
    """No unique order number could be allocated."""

    code = "order_number_conflict"

    def __init__(self, attempts: int):
        super().__init__(
            f"Could not allocate a unique order number after {attempts} attempts",
            attempts=attempts,
        )


class StorageError(StoreError):
    """Transient storage failure that persisted through every retry."""

    code = "storage_error"
    status_code = 503
    default_message = "Storage temporarily unavailable, please retry"
