"""Heuristic optimization, security and quality analysis of Java classes."""

from .analyzer import ClassAnalysisResult, ClassAnalyzer, NoAnalyzableInputError, analyze_source
from .config import AnalysisConfig, load_config

__all__ = [
    "AnalysisConfig",
    "ClassAnalysisResult",
    "ClassAnalyzer",
    "NoAnalyzableInputError",
    "analyze_source",
    "load_config",
]
