from .common import CamelModel, StandardResponse, StandardList
from .user import UserCreate, UserUpdate, UserResponse
from .auth import RegisterRequest, LoginRequest, TokenResponse
from .product import ProductCreate, ProductUpdate, ProductResponse, ProductFilter
from .comment import CommentCreate, CommentResponse
from .cart import AddToCartRequest, CartItemResponse, CartResponse
from .order import OrderItemResponse, OrderResponse, OrderStatusUpdate
