from pydantic import BaseModel, Field


class ThemeStatus(BaseModel):
    public_assets: bool = Field(serialization_alias="publicAssets")
