"""
Stock bookkeeping for orders.

Placing an order takes units off ``food_items.quantity_available`` and moves
them from ``inventory.quantity_in_stock`` to ``inventory.quantity_reserved``.
Cancelling puts them back; completing turns reserved units into sold ones.
Every function takes the database handle explicitly.
"""
import logging
from typing import Any, Dict, Iterable, List, Tuple

from bson import ObjectId
from pymongo import ReturnDocument

from database import now_utc

logger = logging.getLogger(__name__)


class InsufficientStock(Exception):
    def __init__(self, name: str):
        super().__init__(f"Insufficient quantity for {name}")
        self.name = name


def _clamp_at_zero(collection, doc: Dict[str, Any], *fields: str) -> None:
    """Reset any of ``fields`` that went negative on ``doc`` back to 0."""
    negative = {f: 0 for f in fields if doc.get(f, 0) < 0}
    if negative:
        collection.update_one({"_id": doc["_id"]}, {"$set": negative})


def _sync_availability(db, food: Dict[str, Any]) -> None:
    db["food_items"].update_one(
        {"_id": food["_id"]},
        {"$set": {"available": food.get("quantity_available", 0) > 0}},
    )


def reserve_stock(db, lines: Iterable[Tuple[Dict[str, Any], int]]) -> None:
    """Decrement stock for each (food_item_doc, quantity) line.

    The decrement only applies while enough units remain, so a concurrent
    order that got there first makes this one fail instead of overselling.
    On failure the lines already taken are released and InsufficientStock
    is raised.
    """
    taken: List[Dict[str, Any]] = []
    for food, quantity in lines:
        updated = db["food_items"].find_one_and_update(
            {"_id": food["_id"], "quantity_available": {"$gte": quantity}},
            {"$inc": {"quantity_available": -quantity}, "$set": {"updated_at": now_utc()}},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            logger.warning("Stock ran out for %s while placing order", food.get("name"))
            release_stock(db, taken)
            raise InsufficientStock(food.get("name", str(food["_id"])))
        _sync_availability(db, updated)

        inventory = db["inventory"].find_one_and_update(
            {"food_item": str(food["_id"])},
            {"$inc": {"quantity_in_stock": -quantity, "quantity_reserved": quantity},
             "$set": {"updated_at": now_utc()}},
            return_document=ReturnDocument.AFTER,
        )
        if inventory is not None:
            _clamp_at_zero(db["inventory"], inventory, "quantity_in_stock")
        taken.append({"food_item": str(food["_id"]), "quantity": quantity})


def release_stock(db, items: Iterable[Dict[str, Any]], from_sold: bool = False) -> None:
    """Give back the units held by order lines ``{"food_item", "quantity"}``.

    ``from_sold`` is for orders that were already completed, whose units moved
    from reserved to sold.
    """
    source = "quantity_sold" if from_sold else "quantity_reserved"
    for item in items:
        quantity = item["quantity"]
        food = db["food_items"].find_one_and_update(
            {"_id": ObjectId(item["food_item"])},
            {"$inc": {"quantity_available": quantity}, "$set": {"updated_at": now_utc()}},
            return_document=ReturnDocument.AFTER,
        )
        if food is None:
            logger.warning("Food item %s no longer exists, skipping restock", item["food_item"])
            continue
        _sync_availability(db, food)

        inventory = db["inventory"].find_one_and_update(
            {"food_item": item["food_item"]},
            {"$inc": {"quantity_in_stock": quantity, source: -quantity},
             "$set": {"updated_at": now_utc()}},
            return_document=ReturnDocument.AFTER,
        )
        if inventory is not None:
            _clamp_at_zero(db["inventory"], inventory, source)


def settle_stock(db, items: Iterable[Dict[str, Any]]) -> None:
    """Move the units of a completed order from reserved to sold."""
    for item in items:
        inventory = db["inventory"].find_one_and_update(
            {"food_item": item["food_item"]},
            {"$inc": {"quantity_reserved": -item["quantity"], "quantity_sold": item["quantity"]},
             "$set": {"updated_at": now_utc()}},
            return_document=ReturnDocument.AFTER,
        )
        if inventory is not None:
            _clamp_at_zero(db["inventory"], inventory, "quantity_reserved")


def low_stock_threshold(quantity_total: int) -> int:
    # 10% of the day's batch, rounded up
    return -(-quantity_total // 10)


def low_stock_items(db) -> List[Dict[str, Any]]:
    rows = []
    for inv in db["inventory"].find({}):
        if inv.get("quantity_in_stock", 0) <= inv.get("low_stock_threshold", 0):
            food = db["food_items"].find_one({"_id": ObjectId(inv["food_item"])}, {"name": 1})
            rows.append({
                "food_item": inv["food_item"],
                "name": food.get("name") if food else None,
                "quantity_in_stock": inv.get("quantity_in_stock", 0),
                "low_stock_threshold": inv.get("low_stock_threshold", 0),
            })
    return rows
