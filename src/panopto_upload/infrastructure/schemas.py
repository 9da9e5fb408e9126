from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from panopto_upload.domain.session import Session


class SessionUploadPayload(BaseModel):
    """Wire shape of the SessionUpload resource; unknown keys are kept."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(alias="ID")
    folder_id: str = Field(alias="FolderId")
    session_id: Optional[str] = Field(default=None, alias="SessionId")
    upload_target: str = Field(alias="UploadTarget")
    state: int = Field(alias="State")

    @classmethod
    def to_domain(cls, body: Mapping[str, Any]) -> Session:
        payload = cls.model_validate(body)
        return Session(
            id=payload.id,
            folder_id=payload.folder_id,
            session_id=payload.session_id,
            upload_target=payload.upload_target,
            state=payload.state,
            payload=dict(body),
        )


class TokenResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    access_token: str
