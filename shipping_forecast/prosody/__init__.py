"""Prosody package: SSML rendering with fixed timing and pitch contracts."""

from shipping_forecast.prosody.builder import MarkupTemplate, TemplateBuilder
from shipping_forecast.prosody.config import DEFAULT_PROSODY, ProsodyConfig

__all__ = ["DEFAULT_PROSODY", "MarkupTemplate", "ProsodyConfig", "TemplateBuilder"]
