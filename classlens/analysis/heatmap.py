"""Grouping of scored lines into heatmap regions."""

from collections.abc import Mapping

from loguru import logger

from ..config import AnalysisConfig
from .models import HeatmapRegion, RegionBand

# (minimum average score, band, intensity), best band first.
BAND_THRESHOLDS = (
    (80.0, RegionBand.EXCELLENT, 0.2),
    (60.0, RegionBand.GOOD, 0.4),
    (40.0, RegionBand.AVERAGE, 0.6),
    (20.0, RegionBand.POOR, 0.8),
)


def classify_score(score: float) -> tuple[RegionBand, float]:
    """Return the band and heat intensity for an average score."""
    for minimum, band, intensity in BAND_THRESHOLDS:
        if score >= minimum:
            return band, intensity
    return RegionBand.CRITICAL, 1.0


class RegionMerger:
    """Scans sorted line scores and emits contiguous, score-homogeneous regions."""

    def __init__(self, config: AnalysisConfig | None = None):
        config = config or AnalysisConfig()
        self.line_gap = config.region_line_gap
        self.score_tolerance = config.region_score_tolerance
        self.min_region_size = config.min_region_size

    def merge(self, line_scores: Mapping[int, float]) -> list[HeatmapRegion]:
        regions: list[HeatmapRegion] = []
        start = previous = None
        average = 0.0
        size = 0

        for line in sorted(line_scores):
            score = line_scores[line]
            if start is not None and (
                line - previous <= self.line_gap and abs(score - average) <= self.score_tolerance
            ):
                average = (average * size + score) / (size + 1)
                size += 1
            else:
                if start is not None:
                    self._emit(regions, start, previous, average, size)
                start, average, size = line, score, 1
            previous = line

        if start is not None:
            self._emit(regions, start, previous, average, size)
        return regions

    def _emit(self, regions: list, start: int, end: int, average: float, size: int) -> None:
        if size < self.min_region_size:
            logger.debug(f"Dropping {size}-line run at lines {start}-{end}")
            return
        band, intensity = classify_score(average)
        regions.append(
            HeatmapRegion(
                start_line=start,
                end_line=end,
                average_score=average,
                intensity=intensity,
                band=band,
            )
        )
