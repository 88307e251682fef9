from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class AuditLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    action: str
    entity_type: str
    entity_id: str
    before_json: Optional[dict] = None
    after_json: Optional[dict] = None
