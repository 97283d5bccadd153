import json
from typing import List, Optional

from email_validator import EmailNotValidError, validate_email
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from app.dependencies import Services, get_services
from app.middleware.rbac import get_current_user, is_admin
from app.middleware.upload import read_upload
from app.schemas.site_submissions import SiteSubmissionUpdateSchema
from guestpost.core.errors import BadRequestError, ValidationError
from guestpost.core.responses import ApiResponse

site_submission_router = APIRouter(tags=["Site Submissions"])


def _parse_websites(websites: Optional[str], website: Optional[str]) -> List[str]:
    if websites:
        try:
            parsed = json.loads(websites)
        except ValueError:
            parsed = [w.strip() for w in websites.split(",")]
        if isinstance(parsed, str):
            parsed = [parsed]
        elif not isinstance(parsed, list):
            return []
        return [w for w in parsed if isinstance(w, str) and w.strip()]
    return [website] if website else []


def _is_truthy(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("true", "yes", "1")


@site_submission_router.post("")
async def create_site_submission(
    userEmail: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    userId: Optional[str] = Form(None),
    user_id: Optional[str] = Form(None),
    userName: Optional[str] = Form(None),
    name: Optional[str] = Form(None),
    publisherName: Optional[str] = Form(None),
    websites: Optional[str] = Form(None),
    website: Optional[str] = Form(None),
    isOwner: Optional[str] = Form(None),
    websiteOwner: Optional[str] = Form(None),
    country: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    message: Optional[str] = Form(None),
    siteDescription: Optional[str] = Form(None),
    monthlyTraffic: Optional[str] = Form(None),
    domainAuthority: Optional[str] = Form(None),
    domainRating: Optional[str] = Form(None),
    csvFile: Optional[UploadFile] = File(None),
    services: Services = Depends(get_services),
):
    errors = []
    submitter_email = userEmail or email
    try:
        submitter_email = validate_email(submitter_email or "", check_deliverability=False).normalized
    except EmailNotValidError:
        errors.append({"userEmail": "Valid email is required"})

    site_list = _parse_websites(websites, website)
    if not site_list:
        errors.append({"websites": "At least one website is required"})

    owner = _is_truthy(isOwner) or _is_truthy(websiteOwner)
    if not owner:
        errors.append({"isOwner": "You must confirm that you are the owner"})

    if errors:
        raise ValidationError(
            "Validation failed: " + "; ".join(f"{k}: {v}" for e in errors for k, v in e.items()), errors
        )

    data = {
        "userId": userId or user_id,
        "userName": userName or name or publisherName or "Guest User",
        "userEmail": submitter_email,
        "websites": site_list,
        "isOwner": owner,
        "publisherName": publisherName,
        "country": country,
        "phone": phone,
        "message": message,
        "siteDescription": siteDescription,
        "monthlyTraffic": monthlyTraffic,
        "domainAuthority": domainAuthority,
        "domainRating": domainRating,
        "websiteOwner": websiteOwner,
    }

    if csvFile is not None and csvFile.filename:
        content = await read_upload(csvFile, services.settings.MAX_FILE_SIZE)
        try:
            stored = await services.file_storage.save(content, csvFile.filename, "site-submissions")
        except OSError as e:
            raise BadRequestError(f"File upload failed: {e}")
        data["csvFile"] = {**stored, "fileSize": len(content), "mimeType": csvFile.content_type}

    try:
        submission = await services.site_submissions.create_site_submission(
            {k: v for k, v in data.items() if v is not None}
        )
    except Exception:
        if "csvFile" in data:
            await services.file_storage.delete(data["csvFile"]["filePath"])
        raise
    return ApiResponse.created(submission, "Site submission created successfully")


@site_submission_router.get("")
async def get_site_submissions(
    status: Optional[str] = None,
    userEmail: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    filters = {"status": status, "userEmail": userEmail, "page": page, "limit": limit}
    if current_user.get("role") != "admin":
        filters["userEmail"] = current_user["user_email"]

    result = await services.site_submissions.get_site_submissions(filters)
    return ApiResponse.paginated(result["siteSubmissions"], result["page"], result["limit"], result["total"],
                                 "Site submissions retrieved successfully")


@site_submission_router.get("/stats")
async def get_site_submission_stats(userEmail: Optional[str] = None,
                                    current_user: dict = Depends(get_current_user),
                                    services: Services = Depends(get_services)):
    filters = {"userEmail": userEmail}
    if current_user.get("role") != "admin":
        filters["userEmail"] = current_user["user_email"]

    stats = await services.site_submissions.get_site_submission_stats(filters)
    return ApiResponse.success(stats, "Site submission statistics retrieved successfully")


# ------------------------
# Admin only
# ------------------------
@site_submission_router.get("/user/{userEmail}")
async def get_site_submissions_by_user(userEmail: str, status: Optional[str] = None,
                                       admin: dict = Depends(is_admin),
                                       services: Services = Depends(get_services)):
    submissions = await services.site_submissions.get_site_submissions_by_user(userEmail, {"status": status})
    return ApiResponse.success(submissions, "User site submissions retrieved successfully")


@site_submission_router.get("/{id}")
async def get_site_submission_by_id(id: str, admin: dict = Depends(is_admin),
                                    services: Services = Depends(get_services)):
    submission = await services.site_submissions.get_site_submission_by_id(id)
    return ApiResponse.success(submission, "Site submission retrieved successfully")


@site_submission_router.put("/{id}")
async def update_site_submission(id: str, data: SiteSubmissionUpdateSchema,
                                 admin: dict = Depends(is_admin),
                                 services: Services = Depends(get_services)):
    submission = await services.site_submissions.update_site_submission(
        id, data.model_dump(exclude_none=True), reviewer_id=str(admin["_id"])
    )
    return ApiResponse.success(submission, "Site submission updated successfully")


@site_submission_router.delete("/{id}")
async def delete_site_submission(id: str, admin: dict = Depends(is_admin),
                                 services: Services = Depends(get_services)):
    await services.site_submissions.delete_site_submission(id)
    return ApiResponse.success(None, "Site submission deleted successfully")
