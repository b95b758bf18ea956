from pydantic import BaseModel, ConfigDict, Field


class RequestAccessRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subject_id: str = Field(..., alias="pdfId", description="Protected resource being requested")
    secret: str = Field("", alias="password", description="Shared access secret")


class RequestAccessResponse(BaseModel):
    token: str = Field(..., description="One-time token to poll for approval")
    message: str = Field("Waiting for approval")


class ApprovalStatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    approved: bool
    subject_id: str | None = Field(None, serialization_alias="pdfId")


class ApprovalNotification(BaseModel):
    operator_address: str
    subject_id: str
    approval_link: str
