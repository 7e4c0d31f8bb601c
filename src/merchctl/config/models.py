"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, merchctl.toml only contains
overrides.  A fresh store needs no config file at all.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# --- merchctl.toml sections ---


class StoreConfig(BaseModel):
    """[store] section."""

    model_config = {"frozen": True}

    name: str = "storefront"


class ScopesConfig(BaseModel):
    """[scopes] section — capacity of each ordering scope.

    A ``None`` limit makes the scope unbounded.  Menu links never exceed 3.
    ``menu_item`` caps the items of each menu section.
    """

    model_config = {"frozen": True}

    hero_slide: int | None = Field(default=3, ge=1)
    featured_feature: int | None = Field(default=3, ge=1)
    featured_tile: int | None = Field(default=4, ge=1)
    homepage_category_slot: int | None = Field(default=12, ge=1)
    menu_section: int | None = Field(default=10, ge=1)
    menu_item: int | None = Field(default=12, ge=1)
    menu_link: int = Field(default=3, ge=1, le=3)

    def limits(self) -> dict[str, int | None]:
        """Limits keyed the way the scope registry expects them."""
        return {
            "hero-slide": self.hero_slide,
            "featured-item:feature": self.featured_feature,
            "featured-item:tile": self.featured_tile,
            "homepage-category-slot": self.homepage_category_slot,
            "menu-section": self.menu_section,
            "menu-item": self.menu_item,
            "menu-link": self.menu_link,
        }


class PlacementConfig(BaseModel):
    """[placement] section."""

    model_config = {"frozen": True}

    # Run the displacing write sequence inside one database transaction.
    atomic_displacement: bool = True


class MerchConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    store: StoreConfig = Field(default_factory=StoreConfig)
    scopes: ScopesConfig = Field(default_factory=ScopesConfig)
    placement: PlacementConfig = Field(default_factory=PlacementConfig)
