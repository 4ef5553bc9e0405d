"""
Catalog data models for Navigation Service.
"""

from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
from datetime import datetime

from pydantic import BaseModel, Field

from .slugs import slugify


@dataclass(frozen=True)
class MenuLink:
    """Navigation link inside a feature menu."""
    name: str
    href: str
    icon: Optional[str] = None
    enabled: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MenuLink":
        # Only an explicit false suppresses a link
        return cls(
            name=data.get("name", ""),
            href=data.get("href", ""),
            icon=data.get("icon"),
            enabled=data.get("enabled") is not False
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "href": self.href,
            "icon": self.icon,
            "enabled": self.enabled
        }


@dataclass(frozen=True)
class Feature:
    """Global catalog entry.

    ``slug`` is computed from ``key`` once, when the feature is created,
    and stored alongside it. Renaming the key later keeps the slug.
    """
    id: str
    key: str
    slug: str
    display_name: str
    description: Optional[str] = None
    default_menu_links: List[MenuLink] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    retired_at: Optional[datetime] = None

    @classmethod
    def create(cls, id: str, key: str, display_name: str,
               description: Optional[str] = None,
               default_menu_links: Optional[List[MenuLink]] = None) -> "Feature":
        """Create a new catalog feature with its slug derived from the key."""
        return cls(
            id=id,
            key=key,
            slug=slugify(key),
            display_name=display_name,
            description=description,
            default_menu_links=list(default_menu_links or [])
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Feature":
        key = data["key"]
        return cls(
            id=str(data["id"]),
            key=key,
            slug=data.get("slug") or slugify(key),
            display_name=data.get("display_name") or key,
            description=data.get("description"),
            default_menu_links=[MenuLink.from_dict(link) for link in data.get("default_menu_links") or []]
        )

    @property
    def is_active(self) -> bool:
        return self.retired_at is None


@dataclass(frozen=True)
class TenantFeatureEntitlement:
    """Tenant-scoped enable/disable flag for a feature."""
    tenant_id: str
    feature_id: str
    enabled: bool = True
    updated_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TenantFeatureEntitlement":
        return cls(
            tenant_id=str(data["tenant_id"]),
            feature_id=str(data["feature_id"]),
            enabled=data.get("enabled") is not False
        )


@dataclass(frozen=True)
class TenantMenuOverride:
    """Tenant-scoped full replacement of a feature's default menu."""
    tenant_id: str
    feature_id: str
    menu_links: List[MenuLink] = field(default_factory=list)
    updated_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TenantMenuOverride":
        return cls(
            tenant_id=str(data["tenant_id"]),
            feature_id=str(data["feature_id"]),
            menu_links=[MenuLink.from_dict(link) for link in data.get("menu_links") or []]
        )


@dataclass(frozen=True)
class ResolvedFeature:
    """A feature visible to a tenant together with its effective menu."""
    feature: Feature
    effective_menu_links: List[MenuLink] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.feature.id,
            "key": self.feature.key,
            "slug": self.feature.slug,
            "display_name": self.feature.display_name,
            "description": self.feature.description,
            "menu_links": [link.to_dict() for link in self.effective_menu_links]
        }


class MenuLinkResponse(BaseModel):
    """Response model for a menu link."""
    name: str
    href: str
    icon: Optional[str] = None
    enabled: bool = True


class ResolvedFeatureResponse(BaseModel):
    """Response model for a resolved feature."""
    id: str
    key: str
    slug: str
    display_name: str
    description: Optional[str] = None
    menu_links: List[MenuLinkResponse] = Field(default_factory=list)


class MenuResponse(BaseModel):
    """Response model for the caller's navigation menu."""
    result: str = Field(..., description="resolved or gated")
    reason: Optional[str] = Field(None, description="Why the menu was gated")
    tenant_id: Optional[str] = Field(None, description="Tenant the menu was resolved for")
    features: List[ResolvedFeatureResponse] = Field(default_factory=list)
