"""Value types produced by the analysis passes."""

from dataclasses import asdict, dataclass, field
from enum import Enum


class Severity(str, Enum):
    """Severity of a finding."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @classmethod
    def coerce(cls, value) -> "Severity":
        """Map any value onto a severity; unknown values degrade to LOW."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.LOW


class IssueType(str, Enum):
    """Origin of a code issue in the heatmap distribution."""

    OPTIMIZATION = "OPTIMIZATION"
    SECURITY = "SECURITY"


class RegionBand(str, Enum):
    """Quality band of a heatmap region."""

    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    AVERAGE = "AVERAGE"
    POOR = "POOR"
    CRITICAL = "CRITICAL"


@dataclass(frozen=True)
class OptimizationFinding:
    """A single optimization suggestion."""

    type: str  # UNUSED_VARIABLE, STRING_CONCATENATION_IN_LOOP, ...
    description: str
    line_number: int
    original_snippet: str
    severity: Severity


@dataclass(frozen=True)
class SecurityFinding:
    """A single potential vulnerability."""

    type: str  # SQL_INJECTION, HARDCODED_CREDENTIALS, ...
    description: str
    line_number: int
    vulnerable_snippet: str
    severity: Severity


@dataclass(frozen=True)
class CodeIssue:
    """A finding reduced to what line scoring needs."""

    line_number: int
    issue_type: IssueType
    severity: Severity
    description: str


@dataclass
class MethodMetrics:
    """Structural metrics of one method or constructor."""

    key: str  # Unique within the compilation unit
    name: str
    class_name: str
    start_line: int
    end_line: int
    parameter_count: int
    cyclomatic_complexity: int = 1

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1


@dataclass
class ClassMetrics:
    """Structural metrics of one type declaration."""

    class_name: str
    start_line: int
    method_count: int
    field_count: int
    method_keys: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class FieldInfo:
    """Field summary."""

    name: str
    type: str
    access_modifier: str
    is_static: bool = False
    is_final: bool = False


@dataclass(frozen=True)
class MethodInfo:
    """Method or constructor summary."""

    name: str
    return_type: str
    parameters: tuple[str, ...]
    access_modifier: str
    is_static: bool = False
    is_abstract: bool = False
    is_final: bool = False


@dataclass(frozen=True)
class ClassInfo:
    """Summary of the primary type declared in a compilation unit."""

    class_name: str
    package_name: str
    fields: tuple[FieldInfo, ...]
    methods: tuple[MethodInfo, ...]
    imports: tuple[str, ...]
    access_modifier: str
    is_abstract: bool = False
    is_final: bool = False
    is_interface: bool = False


@dataclass(frozen=True)
class HeatmapRegion:
    """A contiguous, score-homogeneous run of scored lines."""

    start_line: int
    end_line: int
    average_score: float
    intensity: float
    band: RegionBand

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1


@dataclass(frozen=True)
class QualityScores:
    """Line, method and class quality scores in [0, 100]."""

    line_scores: dict[int, float]
    method_scores: dict[str, float]
    class_scores: dict[str, float]


def to_plain(value):
    """Convert analysis values into JSON-serializable structures."""
    if isinstance(value, Enum):
        return value.value
    if hasattr(value, "__dataclass_fields__"):
        return {k: to_plain(v) for k, v in asdict(value).items()}
    if isinstance(value, dict):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_plain(v) for v in value]
    return value
