# User value: This file fixes the response shape so callers can rely on it after every upload.
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class UploadedPaths(BaseModel):
    data: str
    pdf: str


class PageUploadResult(BaseModel):
    # User value: tells callers exactly which identifier and remote files each page ended up with.
    page: int
    identifier: int
    filename: str
    paths: UploadedPaths


class UploadJobResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    page_count: int = Field(alias="pageCount", ge=0)
    results: List[PageUploadResult] = Field(default_factory=list)
    # User value: the correlation key callers use to find this job later.
    first_page_identifier: Optional[int] = Field(default=None, alias="firstPageIdentifier")
    request_id: Optional[str] = Field(default=None, alias="requestId")


class UploadJobErrorResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = False
    error: str
    details: Optional[str] = None
    error_code: str = Field(alias="errorCode")
    request_id: Optional[str] = Field(default=None, alias="requestId")
