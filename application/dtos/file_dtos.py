from pydantic import BaseModel, Field


class UploadFileRequest(BaseModel):
    filename: str | None = Field(None, description="Original filename of the upload")
    category: str | None = Field(None, description="Free-text category, sanitized before storage")
    content_type: str | None = Field(None, description="MIME type declared by the client")
    size_bytes: int | None = Field(None, description="Declared payload size, if known up front")


class UploadFileResponse(BaseModel):
    id: str = Field(..., description="Store-assigned identifier of the file")
    name: str = Field(..., description="Original filename")
    category: str = Field(..., description="Sanitized category")
    url: str = Field(..., description="Retrieval URL of the file")


class FileListItem(BaseModel):
    id: str = Field(..., description="Store-assigned identifier of the file")
    name: str = Field(..., description="Original filename")
    url: str = Field(..., description="Retrieval URL of the file")
