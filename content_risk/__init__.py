"""Content-risk classification for uploaded creative archives."""

from content_risk.adapter import OpenAIRiskAdapter, RiskModelAdapter, StaticRiskAdapter
from content_risk.classifier import ANALYSIS_FAILED_NOTE, GENERIC_RISK_WARNING, ContentRiskClassifier
from content_risk.schema import RiskAssessment

__all__ = [
    "ANALYSIS_FAILED_NOTE",
    "ContentRiskClassifier",
    "GENERIC_RISK_WARNING",
    "OpenAIRiskAdapter",
    "RiskAssessment",
    "RiskModelAdapter",
    "StaticRiskAdapter",
]
