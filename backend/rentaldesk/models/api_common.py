# rentaldesk/models/api_common.py

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DetailResponse(BaseModel):
    """Generic error body."""
    detail: str = Field(..., description="Human readable error message.")


class SuccessResponse(BaseModel):
    success: bool = True


class OperationResult(BaseModel):
    """Result of a synchronous backup trigger."""
    success: bool
    file_path: Optional[str] = Field(None, alias="filePath", description="Path relative to the backup root.")

    model_config = ConfigDict(populate_by_name=True)
