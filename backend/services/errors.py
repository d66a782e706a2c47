# backend/services/errors.py

# Base class for business-rule failures raised by the service layer.
# main.py turns these into JSON responses with the given status code.
class StoreError(Exception):
    status_code = 400

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    @property
    def code(self) -> str:
        return type(self).__name__


class EmptyCart(StoreError):
    def __init__(self, message: str = "Cart is empty"):
        super().__init__(message)


class ProductUnavailable(StoreError):
    def __init__(self, product_name: str):
        super().__init__(f"Product is no longer available: {product_name}")
        self.product_name = product_name


class InsufficientStock(StoreError):
    def __init__(self, product_name: str, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for {product_name}: requested {requested}, available {available}"
        )
        self.product_name = product_name
        self.available = available
        self.requested = requested


class InvalidAddress(StoreError):
    status_code = 422

    def __init__(self, missing):
        super().__init__(f"Shipping address is missing required fields: {', '.join(missing)}")
        self.missing = list(missing)


class CannotCancel(StoreError):
    def __init__(self, status: str):
        super().__init__(f"Order cannot be cancelled from status '{status}'")
        self.status = status


class InvalidTransition(StoreError):
    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot change order status from '{current}' to '{target}'")
        self.current = current
        self.target = target


class OrderNotFound(StoreError):
    status_code = 404

    def __init__(self, message: str = "Order not found"):
        super().__init__(message)


class PersistenceFailure(StoreError):
    status_code = 500

    def __init__(self, message: str = "Could not save changes, please retry"):
        super().__init__(message)
