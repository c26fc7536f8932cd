from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class MetaPreview(BaseModel):
    """Catalog item for a single channel"""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Channel id (enigma2_<bouquet id>_<encoded reference>)")
    type: Literal["tv"] = "tv"
    name: str = Field(..., description="Channel name as listed by the receiver")
    poster: str | None = Field(None, description="Square PNG picon as data URL")
    poster_shape: Literal["square"] = Field("square", alias="posterShape")
    genres: list[str] | None = Field(None, description="['HD'] for HD channels")
    description: str = "Live TV channel"


class CatalogResponse(BaseModel):
    """Catalog resource response"""
    metas: list[MetaPreview] = Field(default_factory=list)


class BehaviorHints(BaseModel):
    binge: bool = True


class StreamItem(BaseModel):
    """Single playable stream"""
    model_config = ConfigDict(populate_by_name=True)

    title: str
    url: str
    behavior_hints: BehaviorHints = Field(default_factory=BehaviorHints, alias="behaviorHints")


class StreamResponse(BaseModel):
    """Stream resource response"""
    streams: list[StreamItem] = Field(default_factory=list)


class CatalogExtra(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    is_required: bool = Field(False, alias="isRequired")


class CatalogDescriptor(BaseModel):
    """One catalog (bouquet) announced in the manifest"""
    type: Literal["tv"] = "tv"
    id: str = Field(..., description="Bouquet id")
    name: str = Field(..., description="Prefixed bouquet name")
    extra: list[CatalogExtra] = Field(default_factory=lambda: [CatalogExtra(name="search")])


class Manifest(BaseModel):
    """Addon manifest"""
    id: str
    version: str
    name: str
    description: str
    resources: list[str] = Field(default_factory=lambda: ["catalog", "stream"])
    types: list[str] = Field(default_factory=lambda: ["tv"])
    catalogs: list[CatalogDescriptor] = Field(default_factory=list)
