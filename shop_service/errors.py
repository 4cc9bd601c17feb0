from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ErrorLevel(str, Enum):
    OK = "OK"
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass(frozen=True)
class ErrorDefinition:
    code: int
    level: ErrorLevel
    description: str
    status_code: int = 400


class Errors:
    """Каталог ошибок API: код, уровень, описание и HTTP статус"""

    # General
    OK = ErrorDefinition(0, ErrorLevel.OK, "OK", 200)
    GENERIC_ERROR = ErrorDefinition(1, ErrorLevel.ERROR, "Internal Server Error", 500)
    NOT_FOUND = ErrorDefinition(2, ErrorLevel.ERROR, "Not Found", 404)
    NOT_AUTHORIZED = ErrorDefinition(3, ErrorLevel.ERROR, "Unauthorized", 401)
    VALIDATION_KO = ErrorDefinition(4, ErrorLevel.ERROR, "Validation Error", 400)
    INTEGRITY_ERROR = ErrorDefinition(
        5, ErrorLevel.ERROR, "System has detected an integrity error", 409
    )

    # Products
    PRODUCT_CREATION_ERROR = ErrorDefinition(
        6, ErrorLevel.ERROR, "Error occurred while creating product", 422
    )
    PRODUCT_UPDATE_ERROR = ErrorDefinition(
        7, ErrorLevel.ERROR, "Error occurred while updating product", 422
    )
    PRODUCT_REMOVE_ERROR = ErrorDefinition(
        8, ErrorLevel.ERROR, "Error occurred while removing product", 500
    )
    PRODUCT_NOT_FOUND = ErrorDefinition(9, ErrorLevel.ERROR, "Product not found", 404)
    INSUFFICIENT_STOCK = ErrorDefinition(
        10, ErrorLevel.ERROR, "Insufficient stock for the product", 409
    )
    DUPLICATE_PRODUCT = ErrorDefinition(
        11, ErrorLevel.ERROR, "A product with this name already exists", 409
    )

    # Carts
    CART_ADD_ERROR = ErrorDefinition(
        12, ErrorLevel.ERROR, "Error occurred while adding item to cart", 422
    )
    CART_FETCH_ERROR = ErrorDefinition(
        13, ErrorLevel.ERROR, "Error occurred while fetching cart items", 500
    )
    CART_REMOVE_ERROR = ErrorDefinition(
        14, ErrorLevel.ERROR, "Error occurred while removing item from cart", 500
    )
    CART_ITEM_NOT_FOUND = ErrorDefinition(15, ErrorLevel.ERROR, "Cart item not found", 404)
    CART_EMPTY = ErrorDefinition(16, ErrorLevel.ERROR, "The cart is empty", 400)

    # Comments
    COMMENT_CREATION_ERROR = ErrorDefinition(
        17, ErrorLevel.ERROR, "Error occurred while creating comment", 422
    )
    COMMENT_FETCH_ERROR = ErrorDefinition(
        18, ErrorLevel.ERROR, "Error occurred while fetching comments", 500
    )
    COMMENT_NOT_FOUND = ErrorDefinition(19, ErrorLevel.ERROR, "Comment not found", 404)
    INVALID_COMMENT = ErrorDefinition(20, ErrorLevel.ERROR, "Comment text is too short", 400)
    COMMENT_DELETION_ERROR = ErrorDefinition(
        21, ErrorLevel.ERROR, "Error occurred while deleting comment", 500
    )

    # Users
    USER_CREATION_ERROR = ErrorDefinition(
        22, ErrorLevel.ERROR, "Error occurred while creating user", 422
    )
    USER_UPDATE_ERROR = ErrorDefinition(
        23, ErrorLevel.ERROR, "Error occurred while updating user", 422
    )
    USER_REMOVE_ERROR = ErrorDefinition(
        24, ErrorLevel.ERROR, "Error occurred while removing user", 500
    )
    USER_NOT_FOUND = ErrorDefinition(25, ErrorLevel.ERROR, "User not found", 404)
    DUPLICATE_USER = ErrorDefinition(
        26, ErrorLevel.ERROR, "A user with this email already exists", 409
    )
    INVALID_USER = ErrorDefinition(27, ErrorLevel.ERROR, "Invalid user data", 400)

    # Orders
    ORDER_CREATION_ERROR = ErrorDefinition(
        28, ErrorLevel.ERROR, "Error occurred while creating order", 422
    )
    ORDER_NOT_FOUND = ErrorDefinition(29, ErrorLevel.ERROR, "Order not found", 404)
    ORDER_SAVE_ERROR = ErrorDefinition(
        30, ErrorLevel.ERROR, "Error occurred while saving order", 500
    )
    ORDER_REMOVE_ERROR = ErrorDefinition(
        31, ErrorLevel.ERROR, "Error occurred while removing order", 500
    )
    ORDER_ITEM_CREATION_ERROR = ErrorDefinition(
        32, ErrorLevel.ERROR, "Error occurred while creating order item", 422
    )
    ORDER_ITEM_NOT_FOUND = ErrorDefinition(33, ErrorLevel.ERROR, "Order item not found", 404)
    ORDER_ITEM_SAVE_ERROR = ErrorDefinition(
        34, ErrorLevel.ERROR, "Error occurred while saving order item", 500
    )
    ORDER_ITEM_REMOVE_ERROR = ErrorDefinition(
        35, ErrorLevel.ERROR, "Error occurred while removing order item", 500
    )

    # Auth / constraints
    INVALID_CREDENTIALS = ErrorDefinition(36, ErrorLevel.ERROR, "Invalid email or password", 401)
    PRODUCT_DELETE_CONSTRAINT = ErrorDefinition(
        37, ErrorLevel.ERROR, "Product is referenced by cart or order items", 409
    )
    CART_NOT_FOUND = ErrorDefinition(38, ErrorLevel.ERROR, "Cart not found", 404)
    FORBIDDEN = ErrorDefinition(39, ErrorLevel.ERROR, "Forbidden", 403)

    INTERNAL_SERVER_ERROR = ErrorDefinition(9999, ErrorLevel.ERROR, "Internal Server Error", 500)


class AppException(Exception):
    """Единственный тип доменной ошибки, превращается в стандартный ответ"""

    def __init__(self, error: ErrorDefinition, data: Optional[Any] = None, description: Optional[str] = None):
        self.error = error
        self.code = error.code
        self.level = error.level
        self.description = description or error.description
        self.status_code = error.status_code
        self.data = data
        super().__init__(self.description)

    def to_response(self) -> dict:
        return {
            "errorCode": self.code,
            "errorLevel": self.level.value,
            "errorDescription": self.description,
            "data": self.data,
        }
