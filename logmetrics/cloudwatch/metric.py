import logging
import re
from dataclasses import dataclass
from dataclasses import field
from dataclasses import replace
from datetime import timedelta
from typing import Any
from typing import Dict
from typing import Mapping
from typing import Optional
from typing import TYPE_CHECKING

from logmetrics.errors import ValidationError

if TYPE_CHECKING:
    from logmetrics.core.construct import Construct

logger = logging.getLogger(__name__)

DEFAULT_PERIOD = timedelta(minutes=5)
HIGH_RESOLUTION_PERIODS = (1, 5, 10, 30)

STATISTIC_ALIASES = {
    "avg": "Average",
    "average": "Average",
    "sum": "Sum",
    "min": "Minimum",
    "minimum": "Minimum",
    "max": "Maximum",
    "maximum": "Maximum",
    "n": "SampleCount",
    "samplecount": "SampleCount",
}
_PERCENTILE = re.compile(r"^p(\d{1,2}(?:\.\d+)?|100)$", re.IGNORECASE)


def normalize_statistic(statistic: str) -> str:
    """
    Map a statistic alias to the name CloudWatch expects.

    "avg" -> "Average", "n" -> "SampleCount", "P99" -> "p99". Unknown values raise
    ValidationError.
    """
    simple = STATISTIC_ALIASES.get(statistic.lower())
    if simple:
        return simple
    if _PERCENTILE.match(statistic):
        return statistic.lower()
    raise ValidationError(
        f"Unsupported statistic {statistic!r}. Use one of "
        f"{', '.join(sorted(set(STATISTIC_ALIASES.values())))}, an alias such as 'avg', "
        "or a percentile such as 'p99'",
    )


def validate_period(period: timedelta) -> None:
    if not isinstance(period, timedelta):
        raise ValidationError(
            f"Metric period must be a timedelta, got {type(period).__name__}",
        )
    seconds = period.total_seconds()
    if seconds in HIGH_RESOLUTION_PERIODS:
        return
    if seconds <= 0 or seconds % 60 != 0:
        raise ValidationError(
            f"Metric period must be 1, 5, 10, 30 or a multiple of 60 seconds, got {seconds:g}",
        )


@dataclass(frozen=True)
class Metric:
    """
    A reference to a CloudWatch metric, used to read back or alarm on its values.

    Instances are immutable. Use `with_` to derive a modified copy.
    """

    metric_name: str
    namespace: str
    statistic: str = "Average"
    """Aggregation applied over each period. Aliases like 'avg' are accepted."""
    period: timedelta = DEFAULT_PERIOD
    label: Optional[str] = None
    unit: Optional[str] = None
    dimensions_map: Optional[Mapping[str, str]] = None
    region: Optional[str] = None
    account: Optional[str] = None
    color: Optional[str] = None
    attached_to: Optional["Construct"] = field(default=None, compare=False, repr=False)
    """The construct this metric was derived from. Not part of the metric identity."""

    def __post_init__(self) -> None:
        normalize_statistic(self.statistic)
        validate_period(self.period)
        if self.dimensions_map is not None:
            # Freeze the caller's mapping so later mutation does not leak in.
            object.__setattr__(self, "dimensions_map", dict(self.dimensions_map))

    def __hash__(self) -> int:
        dims = tuple(sorted((self.dimensions_map or {}).items()))
        return hash(
            (
                self.metric_name,
                self.namespace,
                self.statistic,
                self.period,
                self.label,
                self.unit,
                dims,
                self.region,
                self.account,
                self.color,
            ),
        )

    def with_(self, **overrides: Any) -> "Metric":
        """Return a copy with `overrides` applied. Unknown fields raise TypeError."""
        if not overrides:
            return self
        return replace(self, **overrides)

    def attach_to(self, construct: "Construct") -> "Metric":
        """
        Associate this metric with `construct`.

        Region and account default to those of the construct's stack when they are
        not already set on the metric.
        """
        stack = construct.stack
        return replace(
            self,
            region=self.region if self.region is not None else stack.region,
            account=self.account if self.account is not None else stack.account,
            attached_to=construct,
        )

    def to_metric_stat(self) -> Dict[str, Any]:
        """Render as a CloudWatch MetricStat structure."""
        metric: Dict[str, Any] = {
            "Namespace": self.namespace,
            "MetricName": self.metric_name,
        }
        if self.dimensions_map:
            metric["Dimensions"] = [
                {"Name": k, "Value": v} for k, v in self.dimensions_map.items()
            ]
        stat: Dict[str, Any] = {
            "Metric": metric,
            "Period": int(self.period.total_seconds()),
            "Stat": normalize_statistic(self.statistic),
        }
        if self.unit is not None:
            stat["Unit"] = self.unit
        return stat
