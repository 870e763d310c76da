"""Line, method and class quality scoring."""

from collections.abc import Iterable, Mapping

from .models import (
    ClassMetrics,
    CodeIssue,
    IssueType,
    MethodMetrics,
    OptimizationFinding,
    QualityScores,
    SecurityFinding,
    Severity,
)

SEVERITY_PENALTIES = {
    Severity.CRITICAL: 40,
    Severity.HIGH: 25,
    Severity.MEDIUM: 15,
    Severity.LOW: 5,
}
SECURITY_PENALTY = 10

LINE_DECISION_WEIGHT, LINE_DECISION_CAP = 2, 20
METHOD_COMPLEXITY_WEIGHT, METHOD_COMPLEXITY_CAP = 3, 30
METHOD_LENGTH_WEIGHT, METHOD_LENGTH_CAP = 0.5, 20
CLASS_FIELD_WEIGHT, CLASS_FIELD_CAP = 2, 20
CLASS_METHOD_WEIGHT, CLASS_METHOD_CAP = 1, 15


def clamp(score: float) -> float:
    return max(0.0, min(100.0, score))


def build_issue_distribution(
    optimizations: Iterable[OptimizationFinding], security: Iterable[SecurityFinding]
) -> dict[int, list[CodeIssue]]:
    """Group findings by line, optimizations first, in ascending line order."""
    by_line: dict[int, list[CodeIssue]] = {}
    for finding in optimizations:
        by_line.setdefault(finding.line_number, []).append(
            CodeIssue(
                line_number=finding.line_number,
                issue_type=IssueType.OPTIMIZATION,
                severity=Severity.coerce(finding.severity),
                description=finding.description,
            )
        )
    for finding in security:
        by_line.setdefault(finding.line_number, []).append(
            CodeIssue(
                line_number=finding.line_number,
                issue_type=IssueType.SECURITY,
                severity=Severity.coerce(finding.severity),
                description=finding.description,
            )
        )
    return dict(sorted(by_line.items()))


def _average(scores: list[float]) -> float:
    return sum(scores) / len(scores) if scores else 100.0


class QualityScorer:
    """Turns the issue distribution and per-line complexity into QualityScores."""

    def line_score(self, issues: Iterable[CodeIssue], decisions: int = 0) -> float:
        score = 100.0
        for issue in issues:
            score -= SEVERITY_PENALTIES[Severity.coerce(issue.severity)]
            if issue.issue_type == IssueType.SECURITY:
                score -= SECURITY_PENALTY
        score -= min(LINE_DECISION_WEIGHT * decisions, LINE_DECISION_CAP)
        return clamp(score)

    def method_score(self, method: MethodMetrics, line_scores: Mapping[int, float]) -> float:
        scores = [
            score for line, score in line_scores.items() if method.start_line <= line <= method.end_line
        ]
        score = _average(scores)
        score -= min(METHOD_COMPLEXITY_WEIGHT * method.cyclomatic_complexity, METHOD_COMPLEXITY_CAP)
        score -= min(METHOD_LENGTH_WEIGHT * method.line_count, METHOD_LENGTH_CAP)
        return clamp(score)

    def class_score(self, clazz: ClassMetrics, method_scores: Mapping[str, float]) -> float:
        scores = [method_scores[key] for key in clazz.method_keys if key in method_scores]
        score = _average(scores)
        score -= min(CLASS_FIELD_WEIGHT * clazz.field_count, CLASS_FIELD_CAP)
        score -= min(CLASS_METHOD_WEIGHT * clazz.method_count, CLASS_METHOD_CAP)
        return clamp(score)

    def score(
        self,
        issues_by_line: Mapping[int, list[CodeIssue]],
        line_decisions: Mapping[int, int],
        methods: Iterable[MethodMetrics],
        classes: Iterable[ClassMetrics],
    ) -> QualityScores:
        """Score every line with findings, then every method, then every class."""
        line_scores = {
            line: self.line_score(issues, line_decisions.get(line, 0))
            for line, issues in sorted(issues_by_line.items())
        }
        method_scores = {method.key: self.method_score(method, line_scores) for method in methods}
        class_scores = {clazz.class_name: self.class_score(clazz, method_scores) for clazz in classes}
        return QualityScores(
            line_scores=line_scores, method_scores=method_scores, class_scores=class_scores
        )
