"""Component catalog and selection resolution.

The catalog is fixed: library components come from the shadcn registry and
are added by its generator, custom components ship as local templates.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

LIBRARY_COMPONENTS: tuple[str, ...] = (
    "accordion",
    "alert",
    "alert-dialog",
    "aspect-ratio",
    "avatar",
    "badge",
    "breadcrumb",
    "button",
    "calendar",
    "card",
    "carousel",
    "chart",
    "checkbox",
    "collapsible",
    "combobox",
    "command",
    "context-menu",
    "data-table",
    "date-picker",
    "dialog",
    "drawer",
    "dropdown-menu",
    "form",
    "hover-card",
    "input",
    "input-otp",
    "label",
    "menubar",
    "navigation-menu",
    "pagination",
    "popover",
    "progress",
    "radio-group",
    "resizable",
    "scroll-area",
    "select",
    "separator",
    "sheet",
    "sidebar",
    "skeleton",
    "slider",
    "sonner",
    "switch",
    "table",
    "tabs",
    "textarea",
    "toast",
    "toggle",
    "toggle-group",
    "tooltip",
)

CUSTOM_COMPONENTS: tuple[str, ...] = (
    "file-uploader",
    "video-player",
    "timeline",
    "rating",
    "file-tree",
    "copy-button",
)

ALL_COMPONENTS: tuple[str, ...] = LIBRARY_COMPONENTS + CUSTOM_COMPONENTS

ESSENTIAL_COMPONENTS: tuple[str, ...] = (
    "button",
    "card",
    "dialog",
    "dropdown-menu",
    "form",
    "input",
    "label",
    "sheet",
    "tabs",
    "separator",
    "toast",
    "accordion",
    "slider",
)

# Used when a custom selection comes back empty.
DEFAULT_COMPONENTS: tuple[str, ...] = (
    "button",
    "card",
    "sheet",
    "dropdown-menu",
    "tabs",
    "input",
    "label",
)

PRECHECKED_COMPONENTS: frozenset[str] = frozenset(
    {
        "button",
        "card",
        "dialog",
        "dropdown-menu",
        "form",
        "input",
        "label",
        "file-uploader",
        "copy-button",
    }
)

CUSTOM_DISPLAY_NAMES: dict[str, str] = {
    "file-uploader": "File Uploader (Drag & Drop)",
    "video-player": "Video Player Interface",
    "timeline": "Timeline",
    "rating": "Rating/Stars Input",
    "file-tree": "File Tree",
    "copy-button": "Copy to Clipboard Button",
}

# npm packages a custom component needs beyond the core dependencies.
CUSTOM_DEPENDENCIES: dict[str, tuple[str, ...]] = {
    "file-uploader": ("react-dropzone",),
}

CATEGORIES: dict[str, tuple[str, ...]] = {
    "UI Components": LIBRARY_COMPONENTS,
    "Custom Components": CUSTOM_COMPONENTS,
}


# Library components the generated feature files import.
FEATURE_COMPONENTS: dict[str, tuple[str, ...]] = {
    "theme_switch": ("button", "dropdown-menu"),
    "auth": ("button", "input", "label", "card"),
}


def display_name(component: str) -> str:
    """``"dropdown-menu"`` -> ``"Dropdown Menu"``; custom ids use their catalog label."""
    if component in CUSTOM_DISPLAY_NAMES:
        return CUSTOM_DISPLAY_NAMES[component]
    special = {"input-otp": "Input OTP"}
    if component in special:
        return special[component]
    return " ".join(part.capitalize() for part in component.split("-"))


def is_custom(component: str) -> bool:
    return component in CUSTOM_COMPONENTS


class SelectionStrategy(str, Enum):
    """How the component list was chosen."""

    CUSTOM = "custom"
    ALL = "all"
    ESSENTIAL = "essential"


class ComponentSelection(BaseModel):
    """Ordered, de-duplicated list of catalog component ids."""

    model_config = ConfigDict(frozen=True)

    strategy: SelectionStrategy
    components: tuple[str, ...] = Field(default=())

    @field_validator("components", mode="before")
    @classmethod
    def _unique_known(cls, value: object) -> tuple[str, ...]:
        seen: dict[str, None] = {}
        for item in value or ():
            if item not in ALL_COMPONENTS:
                raise ValueError(f"Unknown component: {item!r}")
            seen.setdefault(item, None)
        return tuple(seen)

    @property
    def library(self) -> list[str]:
        """Components the shadcn generator installs."""
        return [c for c in self.components if not is_custom(c)]

    @property
    def custom(self) -> list[str]:
        """Components rendered from local templates."""
        return [c for c in self.components if is_custom(c)]

    def __contains__(self, component: str) -> bool:
        return component in self.components

    def including(self, components: tuple[str, ...] | list[str]) -> ComponentSelection:
        """A copy with *components* appended where missing."""
        return ComponentSelection(
            strategy=self.strategy, components=(*self.components, *components)
        )


def resolve_selection(
    strategy: SelectionStrategy | str,
    chosen: list[str] | None = None,
) -> ComponentSelection:
    """Turn a wizard strategy (plus custom picks) into a concrete selection.

    An empty custom pick falls back to ``DEFAULT_COMPONENTS``.
    """
    strategy = SelectionStrategy(strategy)
    if strategy is SelectionStrategy.ALL:
        components: tuple[str, ...] = ALL_COMPONENTS
    elif strategy is SelectionStrategy.ESSENTIAL:
        components = ESSENTIAL_COMPONENTS
    else:
        components = tuple(chosen or ()) or DEFAULT_COMPONENTS
    return ComponentSelection(strategy=strategy, components=components)


def required_components(features: list[str]) -> tuple[str, ...]:
    """Components the enabled *features* need, in first-use order."""
    seen: dict[str, None] = {}
    for feature in features:
        for component in FEATURE_COMPONENTS.get(feature, ()):
            seen.setdefault(component, None)
    return tuple(seen)
