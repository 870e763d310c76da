"""End-to-end analysis of one Java compilation unit."""

from dataclasses import dataclass, field

from loguru import logger
from tree_sitter import Tree

from .analysis.complexity import ComplexityAnalyzer
from .analysis.heatmap import RegionMerger
from .analysis.models import (
    ClassInfo,
    ClassMetrics,
    CodeIssue,
    HeatmapRegion,
    MethodMetrics,
    OptimizationFinding,
    QualityScores,
    SecurityFinding,
    Severity,
    to_plain,
)
from .analysis.optimization import OptimizationRuleSet
from .analysis.quality import QualityScorer, build_issue_distribution
from .analysis.rules import MethodContext
from .analysis.scope import ScopeTracker, collect_field_names, collect_field_types
from .analysis.security import SecurityRuleSet
from .analysis.structure import StructureAnalyzer, extract_class_info
from .config import AnalysisConfig
from .parser_loader import parse_java_source
from .utils.ast_helpers import TYPE_DECLARATION_NODE_TYPES, find_nodes_by_type


class NoAnalyzableInputError(ValueError):
    """Raised when there is no Java compilation unit to analyze."""


@dataclass
class ClassAnalysisResult:
    """Findings, metrics, scores and regions of one compilation unit."""

    optimizations: list[OptimizationFinding]
    security_issues: list[SecurityFinding]
    class_metrics: list[ClassMetrics]
    method_metrics: list[MethodMetrics]
    line_decisions: dict[int, int]
    issue_distribution: dict[int, list[CodeIssue]]
    scores: QualityScores
    regions: list[HeatmapRegion]
    class_info: ClassInfo | None = None
    file_path: str = field(default="<source>")

    @property
    def overall_quality_score(self) -> float:
        line_scores = self.scores.line_scores
        if not line_scores:
            return 100.0
        return sum(line_scores.values()) / len(line_scores)

    @property
    def total_issue_count(self) -> int:
        return len(self.optimizations) + len(self.security_issues)

    @property
    def critical_issue_count(self) -> int:
        return sum(
            1
            for finding in [*self.optimizations, *self.security_issues]
            if finding.severity == Severity.CRITICAL
        )

    def to_dict(self) -> dict:
        """JSON-serializable view for visualization layers."""
        return {
            "file_path": self.file_path,
            "class_info": to_plain(self.class_info),
            "optimizations": to_plain(self.optimizations),
            "security_issues": to_plain(self.security_issues),
            "class_metrics": to_plain(self.class_metrics),
            "method_metrics": to_plain(self.method_metrics),
            "line_decisions": to_plain(self.line_decisions),
            "issue_distribution": to_plain(self.issue_distribution),
            "scores": to_plain(self.scores),
            "regions": to_plain(self.regions),
            "summary": {
                "overall_quality_score": self.overall_quality_score,
                "total_issue_count": self.total_issue_count,
                "critical_issue_count": self.critical_issue_count,
            },
        }


class ClassAnalyzer:
    """Runs every analysis pass over a parsed compilation unit."""

    def __init__(self, config: AnalysisConfig | None = None):
        self.config = config or AnalysisConfig()
        self.complexity_analyzer = ComplexityAnalyzer()
        self.structure_analyzer = StructureAnalyzer(self.complexity_analyzer)
        self.optimization_rules = OptimizationRuleSet(self.config)
        self.security_rules = SecurityRuleSet()
        self.scorer = QualityScorer()
        self.region_merger = RegionMerger(self.config)

    def analyze(self, tree: Tree | None, file_path: str = "<source>") -> ClassAnalysisResult:
        """Analyze one syntax tree.

        Raises:
            NoAnalyzableInputError: if the tree is missing, is not a Java
                program, or declares no type.
        """
        if tree is None:
            raise NoAnalyzableInputError("No syntax tree to analyze")
        root = tree.root_node
        if root.type != "program":
            raise NoAnalyzableInputError(f"Expected a Java program, got {root.type}")
        if not find_nodes_by_type(root, TYPE_DECLARATION_NODE_TYPES):
            raise NoAnalyzableInputError(f"No type declaration found in {file_path}")

        logger.info(f"Analyzing {file_path}")
        structure = self.structure_analyzer.extract(root)
        tracker = ScopeTracker(collect_field_names(root), collect_field_types(root))

        optimizations: list[OptimizationFinding] = []
        security_issues = self.security_rules.analyze_fields(root)
        class_lines = frozenset(f.line_number for f in security_issues)

        for metrics in structure.methods:
            method = structure.method_nodes[metrics.key]
            context = MethodContext.build(
                method,
                metrics.class_name,
                tracker.track(method),
                structure.complexity[metrics.key],
            )
            optimizations.extend(self.optimization_rules.analyze_method(context))
            security_issues.extend(self.security_rules.analyze_method(context, class_lines))

        line_decisions = structure.line_decisions()
        distribution = build_issue_distribution(optimizations, security_issues)
        scores = self.scorer.score(distribution, line_decisions, structure.methods, structure.classes)
        regions = self.region_merger.merge(scores.line_scores)

        logger.info(
            f"{file_path}: {len(optimizations)} optimization findings, "
            f"{len(security_issues)} security findings, {len(regions)} regions"
        )
        return ClassAnalysisResult(
            optimizations=optimizations,
            security_issues=security_issues,
            class_metrics=structure.classes,
            method_metrics=structure.methods,
            line_decisions=line_decisions,
            issue_distribution=distribution,
            scores=scores,
            regions=regions,
            class_info=extract_class_info(root),
            file_path=file_path,
        )


def analyze_source(
    source: str, config: AnalysisConfig | None = None, file_path: str = "<source>"
) -> ClassAnalysisResult:
    """Parse Java source text and analyze it."""
    return ClassAnalyzer(config).analyze(parse_java_source(source, file_path), file_path)
