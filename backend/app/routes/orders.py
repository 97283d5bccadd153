from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.dependencies import Services, get_services
from app.middleware.rbac import get_current_user, is_admin, is_owner_or_admin
from app.schemas.orders import OrderCompleteSchema, OrderCreateSchema, OrderUpdateSchema
from guestpost.core.errors import ForbiddenError
from guestpost.core.responses import ApiResponse

order_router = APIRouter(tags=["Orders"])


def _date_filters(status, type, startDate, endDate) -> dict:
    return {"status": status, "type": type, "startDate": startDate, "endDate": endDate}


@order_router.get("/stats")
async def get_order_stats(userId: Optional[str] = None, services: Services = Depends(get_services)):
    stats = await services.orders.get_order_stats(userId)
    return ApiResponse.success(stats, "Order statistics retrieved successfully")


@order_router.post("")
async def create_order(data: OrderCreateSchema,
                       current_user: dict = Depends(get_current_user),
                       services: Services = Depends(get_services)):
    order_data = data.model_dump(exclude_none=True)
    order_data.setdefault("userId", str(current_user["_id"]))
    order_data.setdefault("userEmail", current_user["user_email"])
    order_data.setdefault("userName", current_user.get("user_nicename"))
    order_data.setdefault("user_id", order_data["userEmail"])

    order = await services.orders.create_order(order_data)
    return ApiResponse.created(order, "Order created successfully")


@order_router.get("")
async def get_orders(
    userId: Optional[str] = None,
    userEmail: Optional[str] = None,
    status: Optional[str] = None,
    type: Optional[str] = None,
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    filters = {"userId": userId, "userEmail": userEmail, "page": page, "limit": limit,
               **_date_filters(status, type, startDate, endDate)}
    if current_user.get("role") != "admin":
        filters["userId"] = None
        filters["userEmail"] = current_user["user_email"]

    result = await services.orders.get_orders(filters)
    return ApiResponse.paginated(result["orders"], result["page"], result["limit"], result["total"],
                                 "Orders retrieved successfully")


@order_router.get("/user/{userEmail}")
async def get_orders_by_user(
    userEmail: str,
    status: Optional[str] = None,
    type: Optional[str] = None,
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    current_user: dict = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    if not is_owner_or_admin(current_user, userEmail):
        raise ForbiddenError("Not authorized to view these orders")
    orders = await services.orders.get_orders_by_user(userEmail, _date_filters(status, type, startDate, endDate))
    return ApiResponse.success(orders, "User orders retrieved successfully")


@order_router.get("/{id}")
async def get_order_by_id(id: str, current_user: dict = Depends(get_current_user),
                          services: Services = Depends(get_services)):
    order = await services.orders.get_order_by_id(id)
    if not is_owner_or_admin(current_user, order.get("userEmail")):
        raise ForbiddenError("Not authorized to access this order")
    return ApiResponse.success(order, "Order retrieved successfully")


@order_router.put("/{id}")
async def update_order(id: str, data: OrderUpdateSchema,
                       current_user: dict = Depends(get_current_user),
                       services: Services = Depends(get_services)):
    if current_user.get("role") != "admin":
        existing = await services.orders.get_order_by_id(id)
        if not is_owner_or_admin(current_user, existing.get("userEmail")):
            raise ForbiddenError("Not authorized to update this order")

    order = await services.orders.update_order(id, data.model_dump(exclude_unset=True, exclude_none=True))
    return ApiResponse.success(order, "Order updated successfully")


@order_router.delete("/{id}")
async def delete_order(id: str, admin: dict = Depends(is_admin), services: Services = Depends(get_services)):
    await services.orders.delete_order(id)
    return ApiResponse.success(None, "Order deleted successfully")


@order_router.patch("/{id}/complete")
async def complete_order(id: str, data: OrderCompleteSchema,
                         admin: dict = Depends(is_admin),
                         services: Services = Depends(get_services)):
    order = await services.orders.complete_order(id, data.completionMessage, data.completionLink)
    return ApiResponse.success(order, "Order completed successfully")
