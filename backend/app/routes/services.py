from typing import Optional

from fastapi import APIRouter, Depends

from app.dependencies import Services, get_services
from app.middleware.rbac import get_current_user, is_admin
from app.schemas.catalog import (
    ServiceCreateSchema,
    ServicePackageCreateSchema,
    ServicePackageUpdateSchema,
    ServiceUpdateSchema,
)
from guestpost.core.responses import ApiResponse

service_router = APIRouter(tags=["Services"])
service_package_router = APIRouter(tags=["Service Packages"])


# ------------------------
# Services
# ------------------------
@service_router.get("/active")
async def get_active_services(services: Services = Depends(get_services)):
    result = await services.catalog.get_active_services()
    return ApiResponse.success(result, "Active services retrieved successfully")


@service_router.get("")
async def get_services_list(status: Optional[str] = None, search: Optional[str] = None,
                            current_user: dict = Depends(get_current_user),
                            services: Services = Depends(get_services)):
    result = await services.catalog.get_services({"status": status, "search": search})
    return ApiResponse.success(result["services"], "Services retrieved successfully")


@service_router.get("/{id}")
async def get_service_by_id(id: str, current_user: dict = Depends(get_current_user),
                            services: Services = Depends(get_services)):
    service = await services.catalog.get_service_by_id(id)
    return ApiResponse.success(service, "Service retrieved successfully")


@service_router.post("")
async def create_service(data: ServiceCreateSchema, admin: dict = Depends(is_admin),
                         services: Services = Depends(get_services)):
    service = await services.catalog.create_service(data.model_dump(exclude_none=True))
    return ApiResponse.created(service, "Service created successfully")


@service_router.put("/{id}")
async def update_service(id: str, data: ServiceUpdateSchema, admin: dict = Depends(is_admin),
                         services: Services = Depends(get_services)):
    service = await services.catalog.update_service(id, data.model_dump(exclude_none=True))
    return ApiResponse.success(service, "Service updated successfully")


@service_router.delete("/{id}")
async def delete_service(id: str, admin: dict = Depends(is_admin), services: Services = Depends(get_services)):
    await services.catalog.delete_service(id)
    return ApiResponse.success(None, "Service deleted successfully")


# ------------------------
# Service packages
# ------------------------
@service_package_router.get("/grouped")
async def get_grouped_packages(services: Services = Depends(get_services)):
    grouped = await services.packages.get_active_service_packages_grouped()
    return ApiResponse.success(grouped, "Service packages retrieved successfully")


@service_package_router.get("")
async def get_service_packages(serviceId: Optional[str] = None, status: Optional[str] = None,
                               popular: Optional[bool] = None,
                               current_user: dict = Depends(get_current_user),
                               services: Services = Depends(get_services)):
    result = await services.packages.get_service_packages(
        {"serviceId": serviceId, "status": status, "popular": popular}
    )
    return ApiResponse.success(result["packages"], "Service packages retrieved successfully")


@service_package_router.get("/{id}")
async def get_service_package_by_id(id: str, current_user: dict = Depends(get_current_user),
                                    services: Services = Depends(get_services)):
    package = await services.packages.get_service_package_by_id(id)
    return ApiResponse.success(package, "Service package retrieved successfully")


@service_package_router.post("")
async def create_service_package(data: ServicePackageCreateSchema, admin: dict = Depends(is_admin),
                                 services: Services = Depends(get_services)):
    package = await services.packages.create_service_package(data.model_dump(exclude_none=True))
    return ApiResponse.created(package, "Service package created successfully")


@service_package_router.put("/{id}")
async def update_service_package(id: str, data: ServicePackageUpdateSchema, admin: dict = Depends(is_admin),
                                 services: Services = Depends(get_services)):
    package = await services.packages.update_service_package(id, data.model_dump(exclude_none=True))
    return ApiResponse.success(package, "Service package updated successfully")


@service_package_router.delete("/{id}")
async def delete_service_package(id: str, admin: dict = Depends(is_admin),
                                 services: Services = Depends(get_services)):
    await services.packages.delete_service_package(id)
    return ApiResponse.success(None, "Service package deleted successfully")
