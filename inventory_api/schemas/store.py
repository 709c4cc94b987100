from pydantic import BaseModel, ConfigDict, Field


class StoreCreate(BaseModel):
    name: str = Field(..., min_length=1)


class StoreResponse(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)
