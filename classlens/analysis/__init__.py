"""Analysis passes: scope, complexity, rule sets, scoring and heatmap regions."""

from .complexity import ComplexityAnalyzer, ComplexityFacts
from .heatmap import RegionMerger
from .models import (
    ClassInfo,
    ClassMetrics,
    CodeIssue,
    HeatmapRegion,
    MethodMetrics,
    OptimizationFinding,
    QualityScores,
    RegionBand,
    SecurityFinding,
    Severity,
)
from .optimization import OptimizationRuleSet
from .quality import QualityScorer
from .scope import ScopeFacts, ScopeTracker
from .security import SecurityRuleSet
from .structure import StructureAnalyzer, extract_class_info

__all__ = [
    "ClassInfo",
    "ClassMetrics",
    "CodeIssue",
    "ComplexityAnalyzer",
    "ComplexityFacts",
    "HeatmapRegion",
    "MethodMetrics",
    "OptimizationFinding",
    "OptimizationRuleSet",
    "QualityScorer",
    "QualityScores",
    "RegionBand",
    "RegionMerger",
    "ScopeFacts",
    "ScopeTracker",
    "SecurityFinding",
    "SecurityRuleSet",
    "Severity",
    "StructureAnalyzer",
    "extract_class_info",
]
