import logging
import os
import random
import time
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

import jwt
from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from werkzeug.security import check_password_hash, generate_password_hash

import stock
from database import db, create_document, ensure_indexes, get_documents, now_utc
from schemas import (
    APPROVAL_ROLES,
    DEFAULT_FOOD_IMAGE,
    ORDER_STATUSES,
    STAFF_ROLES,
    ApprovalRequest,
    CancelOrderRequest,
    ContactMessage,
    CreateOrderRequest,
    FoodItem,
    FoodItemCreate,
    FoodItemUpdate,
    Inventory,
    LoginRequest,
    Order,
    OrderItem,
    OrderRating,
    OrderStatusUpdate,
    Profile,
    RegisterRequest,
)


JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
JWT_ALGO = "HS256"
JWT_EXPIRE_HOURS = int(os.getenv("JWT_EXPIRE_HOURS", "8"))
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@canteenx.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

PENDING_APPROVAL = "Your registration is pending admin approval."


def bootstrap_admin() -> None:
    """Create the admin profile from ADMIN_EMAIL/ADMIN_PASSWORD if it is missing."""
    if db["profiles"].find_one({"email": ADMIN_EMAIL.lower()}):
        return
    admin = Profile(
        name="Canteen Admin",
        email=ADMIN_EMAIL.lower(),
        college_id="ADMIN001",
        password_hash=generate_password_hash(ADMIN_PASSWORD),
        phone="0000000000",
        role="admin",
        department="Administration",
        is_approved=True,
    )
    create_document("profiles", admin)
    logger.info("Created bootstrap admin %s", ADMIN_EMAIL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_indexes(db)
    bootstrap_admin()
    yield


app = FastAPI(title="CanteenX API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------- Error envelope ----------
@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    message = exc.detail
    if exc.status_code == 404 and message == "Not Found":
        message = "Route not found"
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": message},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if any(e.get("type") == "missing" for e in errors):
        message = "Please provide all required fields"
    elif errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ())[1:])
        message = f"{field}: {first.get('msg')}" if field else first.get("msg")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"success": False, "message": message})


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "message": str(exc)})


# ---------- Helpers ----------
def oid(obj: Any) -> str:
    if isinstance(obj, ObjectId):
        return str(obj)
    return str(obj)


def parse_oid(value: str) -> ObjectId:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise HTTPException(status_code=400, detail="Invalid id")


def serialize_doc(doc: Any) -> Any:
    if isinstance(doc, dict):
        out = {}
        for k, v in doc.items():
            if k == "_id":
                out["id"] = oid(v)
            else:
                out[k] = serialize_doc(v)
        return out
    if isinstance(doc, list):
        return [serialize_doc(v) for v in doc]
    if isinstance(doc, ObjectId):
        return oid(doc)
    if isinstance(doc, datetime):
        return doc.isoformat()
    return doc


def public_profile(doc: Dict) -> Dict:
    out = serialize_doc(doc)
    out.pop("password_hash", None)
    return out


def generate_order_number() -> str:
    timestamp = str(int(time.time() * 1000))[-6:]
    return f"ORD{timestamp}{random.randint(0, 999):03d}"


def is_staff(user: Dict) -> bool:
    return user.get("role") in STAFF_ROLES


# ---------- Auth ----------
def create_jwt(profile: Dict) -> str:
    payload = {
        "sub": oid(profile["_id"]),
        "role": profile["role"],
        "exp": datetime.now(timezone.utc) + timedelta(hours=JWT_EXPIRE_HOURS),
        "iat": datetime.now(timezone.utc),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGO)


bearer = HTTPBearer(auto_error=False)


def current_user(creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer)) -> Dict:
    if creds is None:
        raise HTTPException(status_code=401, detail="Not authorized, no token")
    try:
        payload = jwt.decode(creds.credentials, JWT_SECRET, algorithms=[JWT_ALGO])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")
    try:
        user_id = ObjectId(payload.get("sub"))
    except (InvalidId, TypeError):
        raise HTTPException(status_code=401, detail="Invalid token")
    user = db["profiles"].find_one({"_id": user_id})
    if user is None:
        raise HTTPException(status_code=401, detail="User no longer exists")
    if user.get("role") in APPROVAL_ROLES and not user.get("is_approved"):
        raise HTTPException(status_code=403, detail=PENDING_APPROVAL)
    return user


def require_roles(*roles: str):
    def dependency(user: Dict = Depends(current_user)) -> Dict:
        if user.get("role") not in roles:
            raise HTTPException(status_code=403, detail=f"User role {user.get('role')} is not authorized to access this route")
        return user
    return dependency


require_staff = require_roles(*STAFF_ROLES)
require_admin = require_roles("admin")


# ---------- Basic ----------
@app.get("/")
def root():
    return {"success": True, "message": "CanteenX API running"}


@app.get("/api/health")
def health():
    return {"success": True, "message": "Server is running"}


@app.post("/api/auth/register", status_code=201)
def register(req: RegisterRequest):
    email = req.email.lower()
    if db["profiles"].find_one({"$or": [{"email": email}, {"college_id": req.college_id}]}):
        raise HTTPException(status_code=400, detail="User already exists")
    profile = Profile(
        name=req.name,
        email=email,
        college_id=req.college_id,
        password_hash=generate_password_hash(req.password),
        phone=req.phone,
        role=req.role,
        department=req.department,
        position=req.position,
        is_approved=req.role not in APPROVAL_ROLES,
    )
    try:
        _id = create_document("profiles", profile)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="User already exists")
    logger.info("Registered %s as %s", email, req.role)
    message = "Registration successful" if profile.is_approved else PENDING_APPROVAL
    return {"success": True, "message": message, "data": public_profile(db["profiles"].find_one({"_id": _id}))}


@app.post("/api/auth/login")
def login(req: LoginRequest):
    if not (req.email or req.college_id) or not req.password:
        raise HTTPException(status_code=400, detail="Please provide email/college ID and password")
    query = {"email": req.email.lower()} if req.email else {"college_id": req.college_id}
    user = db["profiles"].find_one(query)
    if user is None or not check_password_hash(user["password_hash"], req.password):
        logger.warning("Failed login for %s", req.email or req.college_id)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if user.get("role") in APPROVAL_ROLES and not user.get("is_approved"):
        raise HTTPException(status_code=403, detail=PENDING_APPROVAL)
    return {"success": True, "token": create_jwt(user), "token_type": "bearer", "user": public_profile(user)}


@app.get("/api/auth/me")
def me(user: Dict = Depends(current_user)):
    return {"success": True, "data": public_profile(user)}


# ---------- Profiles (admin) ----------
@app.get("/api/admin/users", dependencies=[Depends(require_admin)])
def list_users(pending: bool = False, limit: int = 100):
    query: Dict = {}
    if pending:
        query = {"role": {"$in": list(APPROVAL_ROLES)}, "is_approved": False}
    rows = get_documents("profiles", query, limit)
    return {"success": True, "count": len(rows), "data": [public_profile(r) for r in rows]}


@app.put("/api/admin/users/{user_id}/approve", dependencies=[Depends(require_admin)])
def approve_user(user_id: str, body: Optional[ApprovalRequest] = None):
    approved = body.is_approved if body else True
    doc = db["profiles"].find_one_and_update(
        {"_id": parse_oid(user_id)},
        {"$set": {"is_approved": approved, "updated_at": now_utc()}},
        return_document=ReturnDocument.AFTER,
    )
    if doc is None:
        raise HTTPException(status_code=404, detail="User not found")
    logger.info("Set approval of %s to %s", doc["email"], approved)
    return {"success": True, "data": public_profile(doc)}


@app.delete("/api/admin/users/{user_id}")
def delete_user(user_id: str, admin: Dict = Depends(require_admin)):
    _id = parse_oid(user_id)
    if _id == admin["_id"]:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    res = db["profiles"].delete_one({"_id": _id})
    if res.deleted_count == 0:
        raise HTTPException(status_code=404, detail="User not found")
    logger.info("Deleted profile %s", user_id)
    return {"success": True, "message": "User deleted"}


# ---------- Menu ----------
def _insert_food_item(data: FoodItemCreate, created_by: str) -> ObjectId:
    item = FoodItem(
        **data.model_dump(exclude={"image"}),
        image=data.image or DEFAULT_FOOD_IMAGE,
        quantity_available=data.quantity_total,
        created_by=created_by,
    )
    _id = create_document("food_items", item)
    create_document("inventory", Inventory(
        food_item=oid(_id),
        quantity_in_stock=data.quantity_total,
        low_stock_threshold=stock.low_stock_threshold(data.quantity_total),
    ))
    return _id


@app.get("/api/food")
def list_food(category: Optional[str] = None, available: Optional[bool] = None):
    query: Dict = {}
    if category:
        query["category"] = category
    if available is not None:
        query["available"] = available
    items = [serialize_doc(i) for i in db["food_items"].find(query).sort("name", 1)]
    return {"success": True, "count": len(items), "data": items}


@app.get("/api/food/{item_id}")
def get_food(item_id: str):
    doc = db["food_items"].find_one({"_id": parse_oid(item_id)})
    if doc is None:
        raise HTTPException(status_code=404, detail="Food item not found")
    return {"success": True, "data": serialize_doc(doc)}


@app.post("/api/food", status_code=201)
def create_food(item: FoodItemCreate, user: Dict = Depends(require_staff)):
    _id = _insert_food_item(item, oid(user["_id"]))
    logger.info("Added %s to the menu (%d units)", item.name, item.quantity_total)
    return {"success": True, "data": serialize_doc(db["food_items"].find_one({"_id": _id}))}


@app.put("/api/food/{item_id}", dependencies=[Depends(require_staff)])
def update_food(item_id: str, body: FoodItemUpdate):
    _id = parse_oid(item_id)
    changes = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    if "quantity_available" in changes and "available" not in changes:
        changes["available"] = changes["quantity_available"] > 0
    before = db["food_items"].find_one_and_update(
        {"_id": _id},
        {"$set": {**changes, "updated_at": now_utc()}},
        return_document=ReturnDocument.BEFORE,
    )
    if before is None:
        raise HTTPException(status_code=404, detail="Food item not found")

    # keep the inventory ledger in line with manual stock edits
    if "quantity_available" in changes:
        inv_changes: Dict[str, Any] = {"quantity_in_stock": changes["quantity_available"], "updated_at": now_utc()}
        if changes["quantity_available"] > before.get("quantity_available", 0):
            inv_changes["last_restocked"] = now_utc()
        db["inventory"].update_one({"food_item": item_id}, {"$set": inv_changes})
    if "quantity_total" in changes:
        db["inventory"].update_one(
            {"food_item": item_id},
            {"$set": {"low_stock_threshold": stock.low_stock_threshold(changes["quantity_total"])}},
        )
    return {"success": True, "data": serialize_doc(db["food_items"].find_one({"_id": _id}))}


@app.delete("/api/food/{item_id}", dependencies=[Depends(require_staff)])
def delete_food(item_id: str):
    res = db["food_items"].delete_one({"_id": parse_oid(item_id)})
    if res.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Food item not found")
    db["inventory"].delete_one({"food_item": item_id})
    logger.info("Removed food item %s", item_id)
    return {"success": True, "message": "Food item deleted"}


SEED_MENU = [
    {"name": "Butter Chicken", "description": "Creamy butter chicken with basmati rice", "price": 120, "category": "lunch", "quantity_total": 50, "preparation_time": 20},
    {"name": "Paneer Tikka", "description": "Grilled paneer pieces with spices", "price": 100, "category": "snacks", "quantity_total": 40, "is_vegetarian": True},
    {"name": "Aloo Paratha", "description": "Potato stuffed Indian bread", "price": 40, "category": "breakfast", "quantity_total": 80, "is_vegetarian": True, "preparation_time": 10},
    {"name": "Biryani", "description": "Fragrant basmati rice with meat", "price": 150, "category": "lunch", "quantity_total": 30, "preparation_time": 25},
    {"name": "Chow Mein", "description": "Indo-Chinese noodles with vegetables", "price": 80, "category": "snacks", "quantity_total": 60, "is_vegetarian": True, "preparation_time": 12},
    {"name": "Samosa", "description": "Crispy potato and pea samosas (pack of 2)", "price": 20, "category": "snacks", "quantity_total": 100, "is_vegetarian": True, "preparation_time": 5},
    {"name": "Fresh Lemonade", "description": "Refreshing cold lemonade", "price": 30, "category": "beverages", "quantity_total": 150, "is_vegetarian": True, "is_vegan": True, "preparation_time": 2},
    {"name": "Chocolate Cake", "description": "Homemade chocolate cake slice", "price": 60, "category": "desserts", "quantity_total": 25, "is_vegetarian": True, "preparation_time": 3},
    {"name": "Masala Dosa", "description": "Crispy South Indian dosa with sambar", "price": 70, "category": "breakfast", "quantity_total": 45, "is_vegetarian": True, "preparation_time": 12},
    {"name": "Tandoori Chicken", "description": "Spiced and grilled chicken", "price": 130, "category": "lunch", "quantity_total": 35, "preparation_time": 18},
]


@app.post("/api/food/seed")
def seed_menu(user: Dict = Depends(require_admin)):
    if db["food_items"].count_documents({}) > 0:
        return {"success": True, "message": "Menu already seeded"}
    for it in SEED_MENU:
        _insert_food_item(FoodItemCreate(**it), oid(user["_id"]))
    return {"success": True, "message": f"{len(SEED_MENU)} food items created", "inserted": len(SEED_MENU)}


# ---------- Orders ----------
def _insert_order(order: Order) -> ObjectId:
    # order numbers are timestamp + 3 random digits, so a clash just means roll again
    for _ in range(2):
        try:
            return create_document("orders", order)
        except DuplicateKeyError:
            logger.warning("Order number %s already taken, regenerating", order.order_number)
            order.order_number = generate_order_number()
    return create_document("orders", order)


def _load_order(order_id: str, user: Dict) -> Dict:
    order = db["orders"].find_one({"_id": parse_oid(order_id)})
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    if not is_staff(user) and order.get("user") != oid(user["_id"]):
        raise HTTPException(status_code=403, detail="Not authorized")
    return order


def _change_status(order: Dict, new_status: str, extra: Optional[Dict[str, Any]] = None) -> Dict:
    """Persist a status change and apply its stock side effects once.

    ``stock_state`` tracks where the order's units are: ``reserved`` after
    placement, ``sold`` once completed, ``released`` once handed back. Units
    are released only from reserved or sold and settled only from reserved,
    so moving through the same status twice never touches stock twice.
    """
    previous = order.get("status")
    held = order.get("stock_state", "reserved")
    stamp = now_utc()
    changes: Dict[str, Any] = {"status": new_status, "updated_at": stamp, **(extra or {})}
    if new_status == "completed":
        changes["completed_at"] = stamp
    if new_status == "cancelled":
        changes["cancelled_at"] = stamp

    target = held
    if new_status == "cancelled" and held in ("reserved", "sold"):
        target = "released"
    elif new_status == "completed" and held == "reserved":
        target = "sold"
    changes["stock_state"] = target

    # orders placed before stock_state existed have no such field; None matches a missing one
    updated = db["orders"].find_one_and_update(
        {"_id": order["_id"], "status": previous, "stock_state": order.get("stock_state")},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        raise HTTPException(status_code=409, detail="Order was updated by someone else, please retry")

    if target == "released" and held != "released":
        stock.release_stock(db, order.get("items", []), from_sold=held == "sold")
    elif target == "sold" and held == "reserved":
        stock.settle_stock(db, order.get("items", []))
    logger.info("Order %s: %s -> %s (stock %s)", order.get("order_number"), previous, new_status, target)
    return updated


@app.post("/api/orders", status_code=201)
def create_order(req: CreateOrderRequest, user: Dict = Depends(current_user)):
    # the cart merges repeated items, do the same for hand-made requests
    merged: Dict[str, Dict[str, Any]] = {}
    for line in req.items:
        if line.food_item_id in merged:
            merged[line.food_item_id]["quantity"] += line.quantity
        else:
            merged[line.food_item_id] = {"quantity": line.quantity, "notes": line.notes}

    # validate every line before touching stock
    lines: List[Tuple[Dict[str, Any], Dict[str, Any]]] = []
    for food_id, line in merged.items():
        food = db["food_items"].find_one({"_id": parse_oid(food_id)})
        if food is None:
            raise HTTPException(status_code=404, detail=f"Food item {food_id} not found")
        if not food.get("available", True) and food.get("quantity_available", 0) > 0:
            raise HTTPException(status_code=400, detail=f"{food['name']} is not available right now")
        if food.get("quantity_available", 0) < line["quantity"]:
            logger.warning("Rejected order line: %s wants %d, %d left", food["name"], line["quantity"], food.get("quantity_available", 0))
            raise HTTPException(status_code=400, detail=f"Insufficient quantity for {food['name']}")
        lines.append((food, line))

    try:
        stock.reserve_stock(db, [(food, line["quantity"]) for food, line in lines])
    except stock.InsufficientStock as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    items = [
        OrderItem(food_item=oid(food["_id"]), name=food["name"], quantity=line["quantity"],
                  price=float(food["price"]), notes=line["notes"])
        for food, line in lines
    ]
    order = Order(
        order_number=generate_order_number(),
        user=oid(user["_id"]),
        items=items,
        total_amount=round(sum(i.price * i.quantity for i in items), 2),
        payment_method=req.payment_method,
        pickup_time=req.pickup_time,
        scheduled_for=req.scheduled_for or now_utc(),
        notes=req.notes,
    )
    try:
        _id = _insert_order(order)
    except Exception:
        stock.release_stock(db, [i.model_dump() for i in items])
        raise
    logger.info("Order %s placed by %s for %.2f", order.order_number, user.get("email"), order.total_amount)
    return {"success": True, "data": serialize_doc(db["orders"].find_one({"_id": _id}))}


@app.get("/api/orders")
def list_orders(status: Optional[str] = None, limit: int = 100, user: Dict = Depends(current_user)):
    query: Dict = {}
    if not is_staff(user):
        query["user"] = oid(user["_id"])
    if status:
        if status not in ORDER_STATUSES:
            raise HTTPException(status_code=400, detail="Invalid status")
        query["status"] = status
    rows = [serialize_doc(o) for o in get_documents("orders", query, limit)]
    return {"success": True, "count": len(rows), "data": rows}


@app.get("/api/orders/stats", dependencies=[Depends(require_staff)])
def order_stats():
    total_orders = db["orders"].count_documents({})
    revenue = list(db["orders"].aggregate([
        {"$match": {"status": {"$ne": "cancelled"}}},
        {"$group": {"_id": None, "total": {"$sum": "$total_amount"}}},
    ]))
    # naive UTC, which is how Mongo compares stored dates
    midnight = now_utc().replace(hour=0, minute=0, second=0, microsecond=0, tzinfo=None)
    today_orders = db["orders"].count_documents({"created_at": {"$gte": midnight}})
    breakdown = db["orders"].aggregate([{"$group": {"_id": "$status", "count": {"$sum": 1}}}])
    return {
        "success": True,
        "data": {
            "total_orders": total_orders,
            "total_revenue": round(float(revenue[0]["total"]), 2) if revenue else 0,
            "today_orders": today_orders,
            "status_breakdown": {row["_id"]: row["count"] for row in breakdown},
            "low_stock": stock.low_stock_items(db),
        },
    }


@app.get("/api/orders/{order_id}")
def get_order(order_id: str, user: Dict = Depends(current_user)):
    return {"success": True, "data": serialize_doc(_load_order(order_id, user))}


@app.put("/api/orders/{order_id}", dependencies=[Depends(require_staff)])
def update_order_status(order_id: str, body: OrderStatusUpdate):
    if body.status not in ORDER_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid status")
    order = db["orders"].find_one({"_id": parse_oid(order_id)})
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    extra: Dict[str, Any] = {}
    if body.payment_status:
        extra["payment_status"] = body.payment_status
    if body.status == "cancelled" and body.cancelled_reason:
        extra["cancelled_reason"] = body.cancelled_reason
    return {"success": True, "data": serialize_doc(_change_status(order, body.status, extra))}


@app.post("/api/orders/{order_id}/cancel")
def cancel_order(order_id: str, body: Optional[CancelOrderRequest] = None, user: Dict = Depends(current_user)):
    order = _load_order(order_id, user)
    if order.get("user") != oid(user["_id"]):
        raise HTTPException(status_code=403, detail="Not authorized")
    if order.get("status") not in ("pending", "confirmed"):
        raise HTTPException(status_code=400, detail=f"Order is already {order.get('status')} and can no longer be cancelled")
    extra = {"cancelled_reason": body.reason} if body and body.reason else {}
    return {"success": True, "data": serialize_doc(_change_status(order, "cancelled", extra))}


@app.post("/api/orders/{order_id}/rating")
def rate_order(order_id: str, body: OrderRating, user: Dict = Depends(current_user)):
    order = _load_order(order_id, user)
    if order.get("user") != oid(user["_id"]):
        raise HTTPException(status_code=403, detail="Not authorized")
    if order.get("status") != "completed":
        raise HTTPException(status_code=400, detail="Only completed orders can be rated")
    updated = db["orders"].find_one_and_update(
        {"_id": order["_id"], "rating": None},
        {"$set": {"rating": body.rating, "feedback": body.feedback, "updated_at": now_utc()}},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        raise HTTPException(status_code=400, detail="Order already rated")

    for food_id in {i["food_item"] for i in order.get("items", [])}:
        food = db["food_items"].find_one({"_id": ObjectId(food_id)})
        if food is None:
            continue
        count = food.get("total_ratings", 0)
        average = (food.get("rating", 0) * count + body.rating) / (count + 1)
        db["food_items"].update_one(
            {"_id": food["_id"]},
            {"$set": {"rating": round(average, 2), "total_ratings": count + 1}},
        )
    return {"success": True, "data": serialize_doc(updated)}


# ---------- Contact ----------
@app.post("/api/contact", status_code=201)
def create_contact_message(msg: ContactMessage):
    _id = create_document("contact_messages", msg)
    logger.info("Contact message from %s", msg.email)
    return {"success": True, "message": "Message sent", "id": oid(_id)}


@app.get("/api/contact", dependencies=[Depends(require_admin)])
def list_contact_messages(limit: int = 100):
    rows = [serialize_doc(r) for r in get_documents("contact_messages", {}, limit)]
    return {"success": True, "count": len(rows), "data": rows}


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
