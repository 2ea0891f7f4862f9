"""Project file generation: templates, layout document, skeleton and feature files."""

from .features import FeatureWriter
from .generator import ProjectGenerator, build_manifest, update_manifest
from .layout import AUTH_WRAPPER, THEME_WRAPPER, LayoutDocument, Wrapper
from .templates import ARTIFACTS, BUNDLES, TemplateRenderer, TemplateStore, build_context

__all__ = [
    "ARTIFACTS",
    "AUTH_WRAPPER",
    "BUNDLES",
    "FeatureWriter",
    "LayoutDocument",
    "ProjectGenerator",
    "THEME_WRAPPER",
    "TemplateRenderer",
    "TemplateStore",
    "Wrapper",
    "build_context",
    "build_manifest",
    "update_manifest",
]
