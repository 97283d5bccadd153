# guestpost/service/site_submission_service.py
import asyncio
import logging
import math
from typing import Optional

from pymongo import ReturnDocument

from guestpost.core.errors import NotFoundError
from guestpost.db.database import SITE_SUBMISSIONS, is_object_id, maybe_object_id, to_object_id
from guestpost.models.site_submission import SiteSubmission
from guestpost.serialize import serialize_doc, serialize_list
from guestpost.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)


class SiteSubmissionService:
    def __init__(self, db, notifications, file_storage):
        self.submissions = db[SITE_SUBMISSIONS]
        self.notifications = notifications
        self.file_storage = file_storage

    async def create_site_submission(self, data: dict) -> dict:
        data = dict(data)
        data["userEmail"] = data["userEmail"].strip().lower()
        user_id = data.get("userId")
        data["userId"] = to_object_id(user_id) if is_object_id(user_id) else None
        data.pop("status", None)
        doc = SiteSubmission(**data).model_dump(exclude_none=True)

        result = await self.submissions.insert_one(doc)
        doc["_id"] = result.inserted_id
        submission = serialize_doc(doc)
        logger.info("Site submission created for %s (%d websites)", submission["userEmail"], len(submission["websites"]))

        try:
            await self.notifications.send_site_submission_received(submission)
        except Exception:
            logger.exception("Failed to send site submission received email")

        return submission

    async def get_site_submissions(self, filters: Optional[dict] = None) -> dict:
        filters = filters or {}
        page = max(int(filters.get("page") or 1), 1)
        limit = max(int(filters.get("limit") or 10), 1)

        query = {}
        if filters.get("status"):
            query["status"] = filters["status"]
        if filters.get("userEmail"):
            query["userEmail"] = filters["userEmail"].lower()

        cursor = self.submissions.find(query).sort("submittedAt", -1).skip((page - 1) * limit).limit(limit)
        submissions, total = await asyncio.gather(cursor.to_list(length=limit), self.submissions.count_documents(query))
        return {
            "siteSubmissions": serialize_list(submissions),
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": math.ceil(total / limit),
        }

    async def get_site_submission_by_id(self, submission_id: str) -> dict:
        submission = await self.submissions.find_one({"_id": to_object_id(submission_id, "site submission ID")})
        if not submission:
            raise NotFoundError("Site submission not found")
        return serialize_doc(submission)

    async def update_site_submission(self, submission_id: str, data: dict, reviewer_id: Optional[str] = None) -> dict:
        oid = to_object_id(submission_id, "site submission ID")
        current = await self.submissions.find_one({"_id": oid})
        if not current:
            raise NotFoundError("Site submission not found")

        old_status = current.get("status")
        new_status = data.get("status")

        update = {k: v for k, v in data.items() if v is not None}
        reviewed_by = update.get("reviewedBy") or reviewer_id
        if reviewed_by:
            update["reviewedBy"] = maybe_object_id(reviewed_by)
        now = utcnow()
        update["reviewedAt"] = now
        update["updatedAt"] = now

        submission = await self.submissions.find_one_and_update(
            {"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER
        )
        if not submission:
            raise NotFoundError("Site submission not found")
        submission = serialize_doc(submission)

        if new_status and new_status != old_status:
            try:
                if new_status == "approved":
                    await self.notifications.send_site_submission_approved(submission, data.get("adminNotes"))
                elif new_status == "rejected":
                    await self.notifications.send_site_submission_rejected(submission, data.get("adminNotes"))
            except Exception:
                logger.exception("Failed to send site submission status email for %s", submission["id"])

        logger.info("Site submission %s updated (status %s -> %s)", submission["id"], old_status, submission["status"])
        return submission

    async def delete_site_submission(self, submission_id: str):
        oid = to_object_id(submission_id, "site submission ID")
        submission = await self.submissions.find_one({"_id": oid})
        if not submission:
            raise NotFoundError("Site submission not found")

        file_path = (submission.get("csvFile") or {}).get("filePath")
        if file_path:
            try:
                deleted = await self.file_storage.delete(file_path)
                if not deleted:
                    logger.warning("Could not delete file %s for submission %s", file_path, submission_id)
            except Exception:
                logger.exception("Failed to delete file %s", file_path)

        await self.submissions.delete_one({"_id": oid})
        logger.info("Site submission %s deleted", submission_id)

    async def get_site_submission_stats(self, filters: Optional[dict] = None) -> dict:
        filters = filters or {}
        query = {"userEmail": filters["userEmail"].lower()} if filters.get("userEmail") else {}
        total, pending, approved, rejected = await asyncio.gather(
            self.submissions.count_documents(query),
            *(self.submissions.count_documents({**query, "status": s}) for s in ("pending", "approved", "rejected")),
        )
        return {"total": total, "pending": pending, "approved": approved, "rejected": rejected}

    async def get_site_submissions_by_user(self, user_email: str, filters: Optional[dict] = None) -> list:
        filters = filters or {}
        query = {"userEmail": user_email.lower()}
        if filters.get("status"):
            query["status"] = filters["status"]
        submissions = await self.submissions.find(query).sort("submittedAt", -1).to_list(length=None)
        return serialize_list(submissions)
