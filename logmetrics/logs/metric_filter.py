import logging
from typing import Any
from typing import Mapping
from typing import Optional
from typing import Tuple
from typing import TYPE_CHECKING
from typing import Union

from logmetrics.cloudwatch.metric import Metric
from logmetrics.core.construct import Construct
from logmetrics.core.construct import Resource
from logmetrics.core.construct import Stack
from logmetrics.errors import ValidationError
from logmetrics.logs.generated import CfnMetricFilter
from logmetrics.logs.generated import CfnMetricFilterProps
from logmetrics.logs.generated import DimensionProperty
from logmetrics.logs.generated import MetricTransformationProperty
from logmetrics.logs.pattern import IFilterPattern
from logmetrics.logs.units import MetricFilterUnits
from logmetrics.logs.units import to_unit

if TYPE_CHECKING:
    from logmetrics.logs.log_group import ILogGroup

logger = logging.getLogger(__name__)

MAX_DIMENSIONS = 3
DEFAULT_METRIC_VALUE = "1"
DEFAULT_STATISTIC = "avg"


def build_dimensions(
    dimensions: Optional[Mapping[str, str]],
) -> Optional[Tuple[DimensionProperty, ...]]:
    """
    Turn a dimension mapping into ordered key/value pairs.

    Returns None, not an empty tuple, when there is nothing to emit: the template
    must leave Dimensions out rather than declare an empty list.
    """
    if not dimensions:
        return None
    return tuple(DimensionProperty(key=k, value=v) for k, v in dimensions.items())


def _pattern_string(filter_pattern: Union[IFilterPattern, str]) -> str:
    if isinstance(filter_pattern, str):
        return filter_pattern
    return filter_pattern.log_pattern_string


class MetricFilter(Resource):
    """
    A filter that extracts information from CloudWatch Logs and emits it as a
    CloudWatch metric.

    :type scope: Construct
    :param scope: Parent construct the filter is attached to.
    :type id: str
    :param id: Identifier of the filter within `scope`.
    :param log_group: The log group to create the filter on.
    :param filter_pattern: Pattern selecting the log events to count. A plain string is
        used verbatim.
    :param metric_namespace: Namespace of the emitted metric.
    :param metric_name: Name of the emitted metric.
    :param metric_value: Value emitted per matching event. Defaults to "1", which
        counts matches. Use "$field" to publish a value extracted by the pattern.
    :param default_value: Value emitted for periods with no matching event. No value
        is published for such periods when omitted.
    :param unit: Unit of the emitted values. Defaults to MetricFilterUnits.NONE.
    :param dimensions: Up to 3 dimension names mapped to value expressions.
    :param filter_name: Physical name of the filter. Generated on deploy when omitted.
    :raises ValidationError: On more than 3 dimensions or an unknown unit label. The
        filter is not added to `scope` in that case.
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        *,
        log_group: "ILogGroup",
        filter_pattern: Union[IFilterPattern, str],
        metric_namespace: str,
        metric_name: str,
        metric_value: Optional[str] = None,
        default_value: Optional[float] = None,
        unit: Union[MetricFilterUnits, str, None] = None,
        dimensions: Optional[Mapping[str, str]] = None,
        filter_name: Optional[str] = None,
    ) -> None:
        # Validate before attaching to scope so a rejected filter leaves no node behind.
        if not any(isinstance(node, Stack) for node in scope.scopes):
            raise ValidationError(f"MetricFilter '{id}' must be defined within a Stack")
        if len(dimensions or {}) > MAX_DIMENSIONS:
            raise ValidationError(
                f"MetricFilter only supports a maximum of {MAX_DIMENSIONS} Dimensions",
            )
        resolved_unit = to_unit(unit) if unit is not None else MetricFilterUnits.NONE

        super().__init__(scope, id)

        self.metric_name = metric_name
        self.metric_namespace = metric_namespace

        self.metric_transformation = MetricTransformationProperty(
            metric_namespace=metric_namespace,
            metric_name=metric_name,
            metric_value=metric_value if metric_value is not None else DEFAULT_METRIC_VALUE,
            default_value=default_value,
            unit=resolved_unit,
            dimensions=build_dimensions(dimensions),
        )

        self.resource = CfnMetricFilter(
            self,
            "Resource",
            properties=CfnMetricFilterProps(
                log_group_name=log_group.log_group_name,
                filter_pattern=_pattern_string(filter_pattern),
                metric_transformations=(self.metric_transformation,),
                filter_name=filter_name,
            ),
        )
        logger.debug(
            "Declared metric filter %s emitting %s/%s",
            self.path,
            metric_namespace,
            metric_name,
        )

    def metric(self, **overrides: Any) -> Metric:
        """
        Return the metric emitted by this filter.

        Defaults to the average over 5 minutes. Any Metric field passed in `overrides`
        (statistic, period, label, unit, ...) takes precedence over the defaults.
        """
        return Metric(
            **{
                "metric_name": self.metric_name,
                "namespace": self.metric_namespace,
                "statistic": DEFAULT_STATISTIC,
                **overrides,
            },
        ).attach_to(self)
