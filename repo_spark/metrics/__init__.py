"""
Metric functions over normalized commit lists.

Every function here is pure: it takes a list of ``CommitRecord`` (plus, for
some, repository metadata or an injected clock) and returns a metric bundle.
"""

from repo_spark.metrics.classification import (
    calculate_work_classification,
    classify_message,
)
from repo_spark.metrics.contributors import calculate_contributors
from repo_spark.metrics.dora import EMPTY_DORA_METRICS, calculate_dora_metrics
from repo_spark.metrics.health import (
    calculate_health_metrics,
    calculate_user_health_metrics,
)
from repo_spark.metrics.timeline import activity_tier, calculate_timeline

__all__ = [
    "EMPTY_DORA_METRICS",
    "activity_tier",
    "calculate_contributors",
    "calculate_dora_metrics",
    "calculate_health_metrics",
    "calculate_timeline",
    "calculate_user_health_metrics",
    "calculate_work_classification",
    "classify_message",
]
