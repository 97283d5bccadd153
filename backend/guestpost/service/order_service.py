# guestpost/service/order_service.py
import asyncio
import logging
import math
from typing import Optional

from pymongo import ReturnDocument

from guestpost.core.errors import AppError, BadRequestError, InternalServerError, NotFoundError
from guestpost.db.database import ORDERS, USERS, is_object_id, maybe_object_id, to_object_id
from guestpost.models.order import Order
from guestpost.serialize import serialize_doc, serialize_list
from guestpost.utils.datetime_utils import parse_datetime, utcnow

logger = logging.getLogger(__name__)

OPTIONAL_FIELDS = ("description", "article", "file")


def _amount(data: dict) -> float:
    value = data.get("price") or data.get("amount") or 0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0
    # non-finite amounts count as missing
    return amount if math.isfinite(amount) else 0


def _date_range(filters: dict) -> Optional[dict]:
    start, end = parse_datetime(filters.get("startDate")), parse_datetime(filters.get("endDate"))
    if not start and not end:
        return None
    created = {}
    if start:
        created["$gte"] = start
    if end:
        created["$lte"] = end
    return created


class OrderService:
    def __init__(self, db, notifications):
        self.orders = db[ORDERS]
        self.users = db[USERS]
        self.notifications = notifications

    async def _resolve_user(self, data: dict):
        user = None
        user_id = data.get("userId")
        if user_id and is_object_id(user_id):
            user = await self.users.find_one({"_id": to_object_id(user_id)})

        if not user and data.get("userEmail"):
            user = await self.users.find_one({"user_email": data["userEmail"].lower()})

        # user_id is the legacy field, usually holding the email
        if not user and data.get("user_id"):
            legacy = str(data["user_id"])
            query = [{"user_email": legacy.lower()}]
            if is_object_id(legacy):
                query.append({"_id": to_object_id(legacy)})
            user = await self.users.find_one({"$or": query})

        if not user:
            raise NotFoundError("User not found")
        return user

    async def create_order(self, data: dict) -> dict:
        try:
            user = await self._resolve_user(data)

            amount = _amount(data)
            if amount <= 0:
                raise BadRequestError("Order amount must be greater than 0")

            item_name = data.get("item_name") or data.get("name") or data.get("title") or ""
            if not str(item_name).strip():
                raise BadRequestError("Item name is required")

            order_type = data.get("type") or "service"
            if not str(order_type).strip():
                raise BadRequestError("Order type is required")

            email = (data.get("userEmail") or user["user_email"]).lower()
            order = Order(
                userId=user["_id"],
                user_id=data.get("user_id") or email,
                userName=data.get("userName") or user.get("user_nicename") or email.split("@")[0],
                userEmail=email,
                item_name=item_name,
                price=amount,
                type=order_type,
                status="pending",
            )
            doc = order.model_dump(exclude_none=True)

            for field in OPTIONAL_FIELDS:
                if data.get(field):
                    doc[field] = data[field]
            if data.get("features"):
                doc["features"] = list(data["features"])
            if data.get("message"):
                doc["message"] = data["message"]
                doc["message_time"] = utcnow()
            if data.get("submittedAt"):
                doc["submittedAt"] = parse_datetime(data["submittedAt"])

            result = await self.orders.insert_one(doc)
            doc["_id"] = result.inserted_id
            logger.info(
                "Order created: %s for %s. Amount: $%s. Payment will be processed separately.",
                doc["item_name"], doc["userName"], amount,
            )
            return serialize_doc(doc)
        except AppError:
            raise
        except Exception as e:
            logger.exception("Error creating order")
            raise InternalServerError("Failed to create order", cause=e)

    async def get_orders(self, filters: Optional[dict] = None) -> dict:
        filters = filters or {}
        page = max(int(filters.get("page") or 1), 1)
        limit = max(int(filters.get("limit") or 20), 1)

        query = {}
        if filters.get("userId"):
            query["userId"] = maybe_object_id(filters["userId"])
        if filters.get("userEmail"):
            query["userEmail"] = filters["userEmail"].lower()
        for key in ("status", "type"):
            if filters.get(key):
                query[key] = filters[key]
        created = _date_range(filters)
        if created:
            query["createdAt"] = created

        try:
            cursor = self.orders.find(query).sort("createdAt", -1).skip((page - 1) * limit).limit(limit)
            orders, total = await asyncio.gather(cursor.to_list(length=limit), self.orders.count_documents(query))
        except Exception as e:
            logger.exception("Error fetching orders")
            raise InternalServerError("Failed to fetch orders", cause=e)

        return {
            "orders": serialize_list(orders),
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": math.ceil(total / limit),
        }

    async def get_order_by_id(self, order_id: str) -> dict:
        oid = to_object_id(order_id, "order ID")
        try:
            order = await self.orders.find_one({"_id": oid})
        except Exception as e:
            logger.exception("Error fetching order")
            raise InternalServerError("Failed to fetch order", cause=e)
        if not order:
            raise NotFoundError("Order not found")
        return serialize_doc(order)

    async def update_order(self, order_id: str, data: dict) -> dict:
        oid = to_object_id(order_id, "order ID")
        try:
            previous = await self.orders.find_one({"_id": oid})
            if not previous:
                raise NotFoundError("Order not found")

            update = {k: v for k, v in data.items() if k not in ("_id", "id")}
            update["updatedAt"] = utcnow()
            order = await self.orders.find_one_and_update(
                {"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER
            )
            if not order:
                raise NotFoundError("Order not found")
        except AppError:
            raise
        except Exception as e:
            logger.exception("Error updating order")
            raise InternalServerError("Failed to update order", cause=e)

        order = serialize_doc(order)
        if order["status"] != previous["status"]:
            await self._notify_status_change(order, previous["status"], data.get("message"))

        logger.info("Order updated: %s", order["item_name"])
        return order

    async def _notify_status_change(self, order: dict, previous_status: str, message: Optional[str]):
        new_status = order["status"]
        try:
            if previous_status == "pending" and new_status == "processing":
                await self.notifications.send_order_confirmation(order)
                logger.info("Payment confirmation email sent for order %s", order["id"])
            elif new_status == "completed":
                await self.notifications.send_order_completion(order)
                logger.info("Order completion email sent for order %s", order["id"])
            elif new_status == "failed" or new_status == "processing":
                await self.notifications.send_order_status_update(order, message)
                logger.info("Order status update email sent for order %s", order["id"])
        except Exception:
            logger.exception("Failed to send email notification for order %s", order["id"])

    async def delete_order(self, order_id: str):
        oid = to_object_id(order_id, "order ID")
        try:
            order = await self.orders.find_one_and_delete({"_id": oid})
        except Exception as e:
            logger.exception("Error deleting order")
            raise InternalServerError("Failed to delete order", cause=e)
        if not order:
            raise NotFoundError("Order not found")
        logger.info("Order deleted: %s", order.get("item_name"))

    async def complete_order(self, order_id: str, completion_message: Optional[str] = None,
                             completion_link: Optional[str] = None) -> dict:
        oid = to_object_id(order_id, "order ID")
        now = utcnow()
        try:
            order = await self.orders.find_one_and_update(
                {"_id": oid},
                {"$set": {
                    "status": "completed",
                    "completionMessage": completion_message,
                    "completionLink": completion_link,
                    "completedAt": now,
                    "updatedAt": now,
                }},
                return_document=ReturnDocument.AFTER,
            )
        except Exception as e:
            logger.exception("Error completing order")
            raise InternalServerError("Failed to complete order", cause=e)
        if not order:
            raise NotFoundError("Order not found")

        order = serialize_doc(order)
        try:
            await self.notifications.send_order_completion(order)
            logger.info("Order completion email sent for order %s", order["id"])
        except Exception:
            logger.exception("Failed to send completion email for order %s", order["id"])

        logger.info("Order completed: %s", order["item_name"])
        return order

    async def get_order_stats(self, user_id: Optional[str] = None) -> dict:
        query = {"userId": maybe_object_id(user_id)} if user_id else {}
        try:
            total, pending, processing, completed, failed = await asyncio.gather(
                self.orders.count_documents(query),
                *(self.orders.count_documents({**query, "status": s})
                  for s in ("pending", "processing", "completed", "failed")),
            )
            revenue = await self.orders.aggregate([
                {"$match": query},
                {"$group": {"_id": None, "totalRevenue": {"$sum": "$price"}, "averageOrderValue": {"$avg": "$price"}}},
            ]).to_list(length=1)
        except Exception as e:
            logger.exception("Error fetching order stats")
            raise InternalServerError("Failed to fetch order statistics", cause=e)

        totals = revenue[0] if revenue else {}
        return {
            "total": total,
            "pending": pending,
            "processing": processing,
            "completed": completed,
            "failed": failed,
            "totalRevenue": totals.get("totalRevenue") or 0,
            "averageOrderValue": totals.get("averageOrderValue") or 0,
        }

    async def get_orders_by_user(self, user_email: str, filters: Optional[dict] = None) -> list:
        filters = filters or {}
        query = {"userEmail": user_email.lower()}
        for key in ("status", "type"):
            if filters.get(key):
                query[key] = filters[key]
        created = _date_range(filters)
        if created:
            query["createdAt"] = created
        try:
            orders = await self.orders.find(query).sort("createdAt", -1).to_list(length=None)
        except Exception as e:
            logger.exception("Error fetching user orders")
            raise InternalServerError("Failed to fetch user orders", cause=e)
        return serialize_list(orders)
