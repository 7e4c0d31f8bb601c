"""Kind-specific payload schemas.

Field constraints mirror the storefront's admin forms.  Image fields are
opaque references (upload handling lives elsewhere).  Schemas are strict:
unknown fields are rejected.

Updates merge the stored payload with the patch and re-validate the whole
document, so there are no separate partial schemas.
"""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, Field, ValidationError, field_validator

from merchctl.domain.scopes import ScopeKind

ICON_WHITELIST: tuple[str, ...] = (
    "car",
    "truck",
    "package",
    "wrench",
    "key",
    "shield",
    "cpu",
    "battery",
    "shopping-bag",
    "shopping-cart",
    "sparkles",
)

DEFAULT_CTA = "Shop Now"


class KindPayload(BaseModel):
    """Base for payload schemas; ``label_field`` names the operator-facing label."""

    model_config = {"extra": "forbid", "str_strip_whitespace": True, "frozen": True}

    label_field: ClassVar[str] = "title"
    reference_field: ClassVar[str | None] = None

    def display_label(self) -> str:
        return str(getattr(self, self.label_field))

    def reference(self) -> str | None:
        if self.reference_field is None:
            return None
        return getattr(self, self.reference_field)


class HeroSlidePayload(KindPayload):
    title: str = Field(min_length=2, max_length=120)
    subtitle: str = Field(default="", max_length=160)
    caption: str = Field(default="", max_length=240)
    cta_text: str = Field(default=DEFAULT_CTA, min_length=2, max_length=60)
    link_url: str = Field(min_length=1)
    desktop_image: str = Field(min_length=1)
    mobile_image: str = Field(min_length=1)
    alt_text: str = Field(default="", max_length=160)


class FeaturedItemPayload(KindPayload):
    title: str = Field(min_length=2, max_length=160)
    subtitle: str = Field(default="", max_length=200)
    category: str = Field(default="", max_length=120)
    offer: str = Field(default="", max_length=120)
    badge_text: str = Field(default="", max_length=60)
    cta_text: str = Field(default=DEFAULT_CTA, min_length=2, max_length=60)
    link_url: str = Field(min_length=1)
    price: str = Field(default="", max_length=60)
    image: str = Field(min_length=1)
    alt_text: str = Field(default="", max_length=160)


class CategorySlotPayload(KindPayload):
    label_field: ClassVar[str] = "category_id"
    reference_field: ClassVar[str | None] = "category_id"

    category_id: str = Field(min_length=1)


class MenuSectionPayload(KindPayload):
    label_field: ClassVar[str] = "name"

    name: str = Field(min_length=2, max_length=40)
    icon: str
    visible: bool = True

    @field_validator("icon")
    @classmethod
    def _known_icon(cls, value: str) -> str:
        if value not in ICON_WHITELIST:
            msg = f"Unsupported icon {value!r}"
            raise ValueError(msg)
        return value


class MenuItemPayload(KindPayload):
    """A category entry inside a menu section, optionally pinned to a product."""

    label_field: ClassVar[str] = "category_id"
    reference_field: ClassVar[str | None] = "category_id"

    category_id: str = Field(min_length=1)
    product_id: str | None = Field(default=None, min_length=1)


class MenuLinkPayload(KindPayload):
    label_field: ClassVar[str] = "label"

    label: str = Field(min_length=2, max_length=32)
    href: str = Field(min_length=1)
    visible: bool = True


PAYLOAD_MODELS: dict[ScopeKind, type[KindPayload]] = {
    ScopeKind.HERO_SLIDE: HeroSlidePayload,
    ScopeKind.FEATURED_ITEM: FeaturedItemPayload,
    ScopeKind.HOMEPAGE_CATEGORY_SLOT: CategorySlotPayload,
    ScopeKind.MENU_SECTION: MenuSectionPayload,
    ScopeKind.MENU_ITEM: MenuItemPayload,
    ScopeKind.MENU_LINK: MenuLinkPayload,
}


def validate_payload(kind: ScopeKind, data: dict[str, Any]) -> KindPayload:
    """Validate *data* against the schema for *kind*.

    Raises:
        pydantic.ValidationError: If fields are missing or malformed.
    """
    return PAYLOAD_MODELS[kind].model_validate(data)


def dump_payload(payload: KindPayload) -> dict[str, Any]:
    """Serialize a validated payload for storage."""
    return payload.model_dump()


def format_validation_error(exc: ValidationError) -> list[str]:
    """Flatten a pydantic ValidationError into ``field: message`` strings."""
    errors: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"]) or "payload"
        errors.append(f"{loc}: {err['msg']}")
    return errors
