from pydantic import BaseModel


class AuditRecord(BaseModel):
    store_id: int | None = None
    plu: str | None = None
    action: str
    description: str
