# User value: This file describes what callers send so uploads are checked before anything touches the remote server.
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

from schemas.job_contract import DEFAULT_PAYLOAD_FORMAT


class TransferTarget(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    host: Optional[str] = None
    port: Optional[int] = Field(default=22, ge=1, le=65535)
    username: Optional[str] = None
    password: Optional[str] = None
    payload_dir: Optional[str] = Field(default=None, alias="payloadDir")
    pdf_dir: Optional[str] = Field(default=None, alias="pdfDir")
    # User value: reserved for a companion format; created on the server but never written here.
    secondary_dir: Optional[str] = Field(default=None, alias="secondaryDir")


class UploadJobRequest(BaseModel):
    # Required values are checked by the orchestrator so they fail as VALIDATION_ERROR, not a framework 422.
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    target: Optional[TransferTarget] = None
    payload: Optional[str] = None
    pdf_base64: Optional[str] = Field(default=None, alias="pdfBase64")
    base_filename: Optional[str] = Field(default=None, alias="baseFilename")
    original_filename: Optional[str] = Field(default=None, alias="originalFilename")
    field_path_for_id: Optional[str] = Field(default=None, alias="fieldPathForId")
    reuse_identifier_for_first_page: Optional[int] = Field(default=None, alias="reuseIdentifierForFirstPage")
    user_ref: Optional[str] = Field(default=None, alias="userRef")
    classification_ref: Optional[str] = Field(default=None, alias="classificationRef")
    payload_format: Optional[str] = Field(default=DEFAULT_PAYLOAD_FORMAT, alias="payloadFormat")
    # User value: sends every file of this job into one directory when a caller needs a one-off location.
    path_override: Optional[str] = Field(default=None, alias="pathOverride")
