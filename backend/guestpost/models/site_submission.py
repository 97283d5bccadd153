# guestpost/models/site_submission.py
from datetime import datetime
from typing import List, Literal, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field

from guestpost.utils.datetime_utils import utcnow

SubmissionStatus = Literal["pending", "approved", "rejected"]


class StoredFile(BaseModel):
    fileName: str
    filePath: str  # relative to UPLOAD_PATH
    fileSize: Optional[int] = None
    mimeType: Optional[str] = None


class SiteSubmission(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    userId: Optional[ObjectId] = None
    userName: str
    userEmail: str
    websites: List[str] = Field(..., min_length=1)
    isOwner: bool = False
    publisherName: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
    message: Optional[str] = None
    siteDescription: Optional[str] = None
    monthlyTraffic: Optional[str] = None
    domainAuthority: Optional[str] = None
    domainRating: Optional[str] = None
    websiteOwner: Optional[str] = None
    csvFile: Optional[StoredFile] = None

    status: SubmissionStatus = "pending"
    submittedAt: datetime = Field(default_factory=utcnow)
    reviewedAt: Optional[datetime] = None
    reviewedBy: Optional[ObjectId] = None
    adminNotes: Optional[str] = None

    createdAt: datetime = Field(default_factory=utcnow)
    updatedAt: datetime = Field(default_factory=utcnow)
