from typing import Literal, Optional

from pydantic import BaseModel


class SiteSubmissionUpdateSchema(BaseModel):
    status: Optional[Literal["pending", "approved", "rejected"]] = None
    adminNotes: Optional[str] = None
    reviewedBy: Optional[str] = None
