"""Pydantic configuration models."""

from confchain.core.config.models.evaluator import DEFAULT_EVALUATOR_CONFIG, EvaluatorConfig

__all__ = ["EvaluatorConfig", "DEFAULT_EVALUATOR_CONFIG"]
