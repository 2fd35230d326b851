# File: site_audit/aggregator.py
"""site_audit.aggregator: сводка по сайту из результатов проверок страниц.

Чистые функции без ввода-вывода. Результат зависит только от содержимого
списка, а не от порядка страниц: целые суммы и math.fsum не зависят от
перестановки слагаемых.
"""

from __future__ import annotations

import math
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from site_audit.checks.performance import CATEGORIES, METRICS
from site_audit.models import AggregateSummary, PageResultBundle

PERFORMANCE_CHECK = "performance"
ACCESSIBILITY_CHECK = "accessibility"


def round_half_up(value: float) -> int:
    """Округление до ближайшего целого, .5 вверх (для неотрицательных оценок)."""
    return int(math.floor(value + 0.5))


def _category_scores(bundles: Sequence[PageResultBundle]) -> Dict[str, List[int]]:
    scores: Dict[str, List[int]] = {name: [] for name in CATEGORIES}
    for bundle in bundles:
        payload = bundle.payload(PERFORMANCE_CHECK)
        if not payload:
            continue
        categories: Mapping[str, Optional[int]] = payload.get("categories") or {}
        for name in CATEGORIES:
            value = categories.get(name)
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                scores[name].append(int(value))
    return scores


def _metric_values(bundles: Sequence[PageResultBundle]) -> Dict[str, List[float]]:
    values: Dict[str, List[float]] = {name: [] for name in METRICS}
    for bundle in bundles:
        payload = bundle.payload(PERFORMANCE_CHECK)
        if not payload:
            continue
        metrics: Mapping[str, Optional[float]] = payload.get("metrics") or {}
        for name in METRICS:
            value = metrics.get(name)
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                values[name].append(float(value))
    return values


def _violation_count(bundle: PageResultBundle) -> int:
    payload = bundle.payload(ACCESSIBILITY_CHECK)
    if not payload:
        return 0
    return len(payload.get("violations") or [])


def _average(values: Iterable[int]) -> int:
    items = list(values)
    if not items:
        return 0
    return round_half_up(sum(items) / len(items))


def aggregate(bundles: Sequence[PageResultBundle]) -> AggregateSummary:
    """Собирает AggregateSummary; для пустых категорий среднее равно 0."""
    scores = _category_scores(bundles)
    metric_values = _metric_values(bundles)

    failures_by_check: Dict[str, int] = {}
    for bundle in bundles:
        for outcome in bundle.failures:
            failures_by_check[outcome.check] = failures_by_check.get(outcome.check, 0) + 1

    return AggregateSummary(
        pages=len(bundles),
        averages={name: _average(values) for name, values in scores.items()},
        contributors={name: len(values) for name, values in scores.items()},
        metrics={
            name: round(math.fsum(values) / len(values), 2) if values else 0.0
            for name, values in metric_values.items()
        },
        accessibility_violations=sum(_violation_count(b) for b in bundles),
        failed_checks=sum(failures_by_check.values()),
        failures_by_check=dict(sorted(failures_by_check.items())),
    )


__all__ = ["aggregate", "round_half_up"]
