# guestpost/service/catalog_service.py
import logging
import re
from collections import OrderedDict
from typing import Optional

from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from guestpost.core.errors import ConflictError, NotFoundError
from guestpost.db.database import SERVICE_PACKAGES, SERVICES, to_object_id
from guestpost.models.service import Service, ServicePackage
from guestpost.serialize import serialize_doc, serialize_list
from guestpost.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)


def _patch(data: dict) -> dict:
    update = {k: v for k, v in data.items() if v is not None and k not in ("_id", "id", "createdAt")}
    update["updatedAt"] = utcnow()
    return update


class CatalogService:
    """Services shown on the storefront."""

    def __init__(self, db):
        self.services = db[SERVICES]

    async def create_service(self, data: dict) -> dict:
        doc = Service(**{k: v for k, v in data.items() if v is not None}).model_dump()
        try:
            result = await self.services.insert_one(doc)
        except DuplicateKeyError:
            raise ConflictError("A service with this title already exists")
        doc["_id"] = result.inserted_id
        logger.info("Service created: %s", doc["title"])
        return serialize_doc(doc)

    async def get_services(self, filters: Optional[dict] = None) -> dict:
        filters = filters or {}
        query = {}
        if filters.get("status"):
            query["status"] = filters["status"]
        if filters.get("search"):
            pattern = re.escape(filters["search"])
            query["$or"] = [
                {"title": {"$regex": pattern, "$options": "i"}},
                {"description": {"$regex": pattern, "$options": "i"}},
            ]
        services = await self.services.find(query).sort([("order", ASCENDING), ("createdAt", DESCENDING)]).to_list(length=None)
        return {"services": serialize_list(services), "total": len(services)}

    async def get_active_services(self) -> list:
        services = await self.services.find({"status": "active"}).sort(
            [("order", ASCENDING), ("createdAt", DESCENDING)]
        ).to_list(length=None)
        return serialize_list(services)

    async def get_service_by_id(self, service_id: str) -> dict:
        service = await self.services.find_one({"_id": to_object_id(service_id, "service ID")})
        if not service:
            raise NotFoundError("Service not found")
        return serialize_doc(service)

    async def update_service(self, service_id: str, data: dict) -> dict:
        try:
            service = await self.services.find_one_and_update(
                {"_id": to_object_id(service_id, "service ID")},
                {"$set": _patch(data)},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            raise ConflictError("A service with this title already exists")
        if not service:
            raise NotFoundError("Service not found")
        logger.info("Service updated: %s", service["title"])
        return serialize_doc(service)

    async def delete_service(self, service_id: str):
        service = await self.services.find_one_and_delete({"_id": to_object_id(service_id, "service ID")})
        if not service:
            raise NotFoundError("Service not found")
        logger.info("Service deleted: %s", service["title"])


class ServicePackageService:
    def __init__(self, db):
        self.packages = db[SERVICE_PACKAGES]

    async def create_service_package(self, data: dict) -> dict:
        doc = ServicePackage(**{k: v for k, v in data.items() if v is not None}).model_dump()
        result = await self.packages.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info("Service package created: %s", doc["name"])
        return serialize_doc(doc)

    async def get_service_packages(self, filters: Optional[dict] = None) -> dict:
        filters = filters or {}
        query = {}
        for key in ("serviceId", "status"):
            if filters.get(key):
                query[key] = filters[key]
        if filters.get("popular") is not None:
            query["popular"] = filters["popular"]

        packages = await self.packages.find(query).sort(
            [("serviceId", ASCENDING), ("order", ASCENDING), ("createdAt", DESCENDING)]
        ).to_list(length=None)
        return {"packages": serialize_list(packages), "total": len(packages)}

    async def get_active_service_packages_grouped(self) -> dict:
        packages = await self.packages.find({"status": "active"}).sort(
            [("serviceId", ASCENDING), ("order", ASCENDING)]
        ).to_list(length=None)
        grouped = OrderedDict()
        for package in serialize_list(packages):
            grouped.setdefault(package["serviceId"], []).append(package)
        return grouped

    async def get_service_package_by_id(self, package_id: str) -> dict:
        package = await self.packages.find_one({"_id": to_object_id(package_id, "service package ID")})
        if not package:
            raise NotFoundError("Service package not found")
        return serialize_doc(package)

    async def update_service_package(self, package_id: str, data: dict) -> dict:
        package = await self.packages.find_one_and_update(
            {"_id": to_object_id(package_id, "service package ID")},
            {"$set": _patch(data)},
            return_document=ReturnDocument.AFTER,
        )
        if not package:
            raise NotFoundError("Service package not found")
        logger.info("Service package updated: %s", package["name"])
        return serialize_doc(package)

    async def delete_service_package(self, package_id: str):
        package = await self.packages.find_one_and_delete({"_id": to_object_id(package_id, "service package ID")})
        if not package:
            raise NotFoundError("Service package not found")
        logger.info("Service package deleted: %s", package["name"])
