"""Unified data model shared by every provider.

Python attributes are snake_case; JSON output uses camelCase aliases
(``thumbnailUrl``, ``hasNextPage`` ...) so every provider serializes to the
same wire shape. Always dump with ``by_alias=True``.
"""

from enum import Enum
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class ContentType(str, Enum):
    """Kinds of items a provider can list."""

    PORN_VIDEO = "porn-video"
    SEX_GALLERY = "sex-gallery"
    SEX_STORY = "sex-story"


class _UnifiedModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


def _require_absolute(value: Optional[str]) -> Optional[str]:
    if value and not value.lower().startswith(("http://", "https://")):
        raise ValueError(f"expected an absolute http(s) URL, got {value[:80]!r}")
    return value


# =============================================================================
# Items
# =============================================================================


class UnifiedVideoData(_UnifiedModel):
    """One normalized content item (video, gallery or story)."""

    # Identification
    id: str = Field(..., min_length=1, description="Provider-local identifier")
    slug: str = Field(..., min_length=1, description="URL-safe routing identifier")
    title: str = Field(..., min_length=1)
    provider: str = Field(..., min_length=1, description="Owning provider id")
    type: ContentType = ContentType.PORN_VIDEO

    # Display
    thumbnail: str = Field(default="", description="Absolute, possibly proxied image URL")
    thumbnail_url: Optional[str] = None

    # Playback, in consumer priority order: video_url, proxy_embed_url, embed_url, url
    video_url: Optional[str] = Field(None, description="Direct media file URL")
    proxy_embed_url: Optional[str] = Field(
        None, description="Provider-specific worker-proxied embed"
    )
    embed_url: Optional[str] = Field(None, description="Generic iframe embed URL")
    url: Optional[str] = Field(None, description="Raw player or page URL")

    # Free-text display fields, intentionally unparsed
    duration: Optional[str] = None
    views: Optional[str] = None
    upload_date: Optional[str] = None
    description: Optional[str] = None
    excerpt: Optional[str] = None

    categories: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    models: list[str] = Field(default_factory=list)

    gallery_images: Optional[list[str]] = None
    related_videos: Optional[list["UnifiedVideoData"]] = None

    post_url: str = Field(..., min_length=1, description="Canonical source URL")

    @field_validator("thumbnail", "thumbnail_url", "video_url", "embed_url", "proxy_embed_url")
    @classmethod
    def _absolute_urls(cls, value: Optional[str]) -> Optional[str]:
        return _require_absolute(value)

    @field_validator("gallery_images")
    @classmethod
    def _absolute_gallery(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        if value is None:
            return None
        for image in value:
            _require_absolute(image)
        return list(dict.fromkeys(value))

    @model_validator(mode="after")
    def _shape_by_type(self) -> "UnifiedVideoData":
        if self.type != ContentType.SEX_GALLERY:
            self.gallery_images = None
        if self.related_videos:
            for related in self.related_videos:
                related.related_videos = None
        return self

    def playable_url(self) -> Optional[str]:
        """First playback URL in priority order, falling back to the page."""
        return (
            self.video_url
            or self.proxy_embed_url
            or self.embed_url
            or self.url
            or self.post_url
        )

    def as_related(self) -> "UnifiedVideoData":
        """Shallow copy suitable for another item's ``related_videos``."""
        return self.model_copy(update={"related_videos": None})


UnifiedVideoData.model_rebuild()


class UnifiedCategoryData(_UnifiedModel):
    """One category as exposed by a provider."""

    slug: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    url: str
    provider: str
    count: Optional[int] = None
    thumbnail: Optional[str] = None
    description: Optional[str] = None

    @field_validator("thumbnail")
    @classmethod
    def _absolute_thumbnail(cls, value: Optional[str]) -> Optional[str]:
        return _require_absolute(value) or None


# =============================================================================
# Envelope
# =============================================================================


class Pagination(_UnifiedModel):
    """Pagination metadata attached to list responses."""

    current_page: int = Field(1, ge=1)
    total_pages: int = Field(1, ge=1)
    has_next_page: bool = False


class ProviderResponse(_UnifiedModel, Generic[T]):
    """Envelope returned by every scraper operation."""

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    error_kind: Optional[str] = Field(
        None, description="Exception class name for handled failures"
    )
    provider: Optional[str] = None
    pagination: Optional[Pagination] = None

    def to_json(self) -> dict:
        """JSON-ready dict with camelCase keys and unset optionals dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


VideoListResponse = ProviderResponse[list[UnifiedVideoData]]
VideoResponse = ProviderResponse[UnifiedVideoData]
CategoryListResponse = ProviderResponse[list[UnifiedCategoryData]]


# =============================================================================
# Provider Metadata
# =============================================================================


class ProviderMetadata(_UnifiedModel):
    """Public description of a registered provider."""

    id: str
    name: str
    display_name: str
    description: str = ""
    base_url: str
    features: list[str] = Field(default_factory=list)
    has_search: bool = True
    has_galleries: bool = False
    has_stories: bool = False
    has_dynamic_categories: bool = True
    paginates_categories: bool = True
