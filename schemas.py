"""
Database Schemas for the campus canteen

Each Pydantic model corresponds to a MongoDB collection. Collection names
follow the tables the frontend reads:
- FoodItem -> "food_items"
- Inventory -> "inventory"
- Order -> "orders"
- Profile -> "profiles"
- ContactMessage -> "contact_messages"

Request bodies live next to the collection they write to.
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field


FOOD_CATEGORIES = ("breakfast", "lunch", "snacks", "beverages", "desserts", "special")
ORDER_STATUSES = ("pending", "confirmed", "preparing", "ready", "completed", "cancelled")
ROLES = ("student", "teacher", "admin", "canteen_owner")
STAFF_ROLES = ("admin", "canteen_owner")
APPROVAL_ROLES = ("student", "teacher")

FoodCategory = Literal["breakfast", "lunch", "snacks", "beverages", "desserts", "special"]
PaymentMethod = Literal["online", "cash"]
PaymentStatus = Literal["pending", "completed", "failed"]
Role = Literal["student", "teacher", "admin", "canteen_owner"]

DEFAULT_FOOD_IMAGE = "https://via.placeholder.com/300x200?text=Food+Item"


# ---------- Menu ----------
class FoodItem(BaseModel):
    name: str = Field(..., min_length=1, description="Dish name")
    description: str = Field(..., min_length=1, description="Short description of the dish")
    price: float = Field(..., ge=0, description="Price in INR")
    category: FoodCategory
    image: str = Field(DEFAULT_FOOD_IMAGE, description="Image URL")
    available: bool = Field(True, description="Shown as orderable on the menu")
    quantity_available: int = Field(..., ge=0, description="Units left to order")
    quantity_total: int = Field(..., ge=0, description="Units prepared for the day")
    preparation_time: int = Field(15, ge=0, description="Minutes")
    is_vegetarian: bool = False
    is_vegan: bool = False
    tags: List[str] = Field(default_factory=list)
    rating: float = Field(0, ge=0, le=5)
    total_ratings: int = Field(0, ge=0)
    created_by: Optional[str] = Field(None, description="Profile id of the staff member who added it")


class FoodItemCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    category: FoodCategory
    quantity_total: int = Field(..., ge=1)
    image: Optional[str] = None
    preparation_time: int = Field(15, ge=0)
    is_vegetarian: bool = False
    is_vegan: bool = False
    tags: List[str] = Field(default_factory=list)


class FoodItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, ge=0)
    category: Optional[FoodCategory] = None
    image: Optional[str] = None
    available: Optional[bool] = None
    quantity_available: Optional[int] = Field(None, ge=0)
    quantity_total: Optional[int] = Field(None, ge=0)
    preparation_time: Optional[int] = Field(None, ge=0)
    is_vegetarian: Optional[bool] = None
    is_vegan: Optional[bool] = None
    tags: Optional[List[str]] = None


class Inventory(BaseModel):
    """Stock ledger kept beside each food item. Collection name: "inventory"."""
    food_item: str = Field(..., description="FoodItem _id")
    quantity_in_stock: int = Field(..., ge=0)
    quantity_reserved: int = Field(0, ge=0, description="Ordered but not yet handed over")
    quantity_sold: int = Field(0, ge=0)
    low_stock_threshold: int = Field(5, ge=0)
    last_restocked: Optional[datetime] = None
    notes: Optional[str] = None


# ---------- Orders ----------
class OrderItemIn(BaseModel):
    food_item_id: str = Field(..., description="MongoDB ObjectId string of the food item")
    quantity: int = Field(..., ge=1)
    notes: Optional[str] = None


class CreateOrderRequest(BaseModel):
    items: List[OrderItemIn] = Field(..., min_length=1)
    payment_method: PaymentMethod
    pickup_time: datetime
    scheduled_for: Optional[datetime] = None
    notes: Optional[str] = None


class OrderItem(BaseModel):
    food_item: str
    name: str = Field(..., description="Snapshot of the item name at order time")
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0, description="Snapshot of the unit price at order time")
    notes: Optional[str] = None


class Order(BaseModel):
    order_number: str
    user: str
    items: List[OrderItem]
    total_amount: float = Field(..., ge=0)
    status: str = Field("pending", description="pending | confirmed | preparing | ready | completed | cancelled")
    payment_method: PaymentMethod
    payment_status: PaymentStatus = "pending"
    pickup_time: datetime
    scheduled_for: datetime
    notes: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=5)
    feedback: Optional[str] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancelled_reason: Optional[str] = None
    stock_state: Literal["reserved", "sold", "released"] = Field("reserved", description="Where the ordered units are held")


class OrderStatusUpdate(BaseModel):
    # checked against ORDER_STATUSES in the handler so bad values get "Invalid status"
    status: str
    payment_status: Optional[PaymentStatus] = None
    cancelled_reason: Optional[str] = None


class CancelOrderRequest(BaseModel):
    reason: Optional[str] = None


class OrderRating(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    feedback: Optional[str] = None


# ---------- Profiles ----------
class Profile(BaseModel):
    name: str
    email: EmailStr
    college_id: str
    password_hash: str
    phone: str
    role: Role = "student"
    department: str
    position: Optional[str] = Field(None, description="Designation, teachers only")
    is_approved: bool = False


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    college_id: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6)
    phone: str = Field(..., min_length=1)
    department: str = Field(..., min_length=1)
    role: Literal["student", "teacher", "canteen_owner"] = "student"
    position: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    college_id: Optional[str] = None
    password: str


class ApprovalRequest(BaseModel):
    is_approved: bool = True


# ---------- Contact ----------
class ContactMessage(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    subject: Optional[str] = None
    message: str = Field(..., min_length=1)
