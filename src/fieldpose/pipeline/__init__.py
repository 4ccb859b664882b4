"""Localization pipeline orchestration."""

from fieldpose.pipeline.localizer import LocalizationPipeline

__all__ = ["LocalizationPipeline"]
