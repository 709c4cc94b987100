from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)


class ProductFilters(BaseModel):
    name: str | None = None
    plu: str | None = None

    # An empty query value means "no filter"
    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ProductResponse(BaseModel):
    id: int
    plu: str
    name: str

    model_config = ConfigDict(from_attributes=True)
