# ==============================================================================
# DOMAIN ERRORS
# ==============================================================================
# Exceptions raised by the service layer.
# Routes catch PosError and turn it into {"ok": False, "error": ...} with the
# status_code carried by the exception.
# ==============================================================================


class PosError(Exception):
    """Base class for every business error raised by the services."""
    status_code = 400


# ==============================================================================
# VALIDATION (400)
# ==============================================================================

class ValidationError(PosError):
    """Invalid input: missing fields, bad values, rule violations."""
    status_code = 400


class EmptyCartError(ValidationError):
    def __init__(self, message: str = 'Cart is empty'):
        super().__init__(message)


class InsufficientCashError(ValidationError):
    def __init__(self, message: str = 'Insufficient cash received'):
        super().__init__(message)


class InsufficientStockError(ValidationError):
    """A stock change would leave a product below zero."""

    def __init__(self, product_name: str, requested: int, available: int):
        self.product_name = product_name
        self.requested = requested
        self.available = available
        super().__init__(
            f"Not enough stock for {product_name}. "
            f"Requested: {requested}, Available: {available}"
        )


class DuplicateSkuError(ValidationError):
    def __init__(self, sku: str):
        self.sku = sku
        super().__init__(f"A product with SKU '{sku}' already exists")


# ==============================================================================
# NOT FOUND (404)
# ==============================================================================

class NotFoundError(PosError):
    status_code = 404


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")


class TransactionNotFoundError(NotFoundError):
    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction {transaction_id} not found")


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


# ==============================================================================
# CONFLICT (409) AND AUTHENTICATION (401)
# ==============================================================================

class StockConflictError(PosError):
    """
    The stock seen by the caller is no longer the current stock.
    Raised by compare-and-swap stock adjustments.
    """
    status_code = 409

    def __init__(self, product_id: str, expected: int, actual: int):
        self.product_id = product_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Stock for product {product_id} changed "
            f"(expected {expected}, found {actual})"
        )


class AuthenticationError(PosError):
    status_code = 401

    def __init__(self, message: str = 'Invalid username or password'):
        super().__init__(message)
