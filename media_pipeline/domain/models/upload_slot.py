"""Upload slot returned to clients."""

from datetime import datetime

from pydantic import BaseModel, Field


class UploadSlot(BaseModel):
    """A single-use presigned PUT target.

    Not persisted on its own. Whether the client used it is answered by
    object storage, not by this record.
    """

    object_name: str
    upload_url: str
    expires_at: datetime
    expires_in: int = Field(ge=1, description="Validity in seconds at issue time")
    asset_id: str
