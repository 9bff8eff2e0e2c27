"""
Resource schema for the AWS::Logs resource types logmetrics declares.

Property classes mirror the CloudFormation resource specification one to one:
each field renders to the PascalCase key of the same name, and fields left to
None are omitted from the template.
"""

from dataclasses import dataclass
from typing import Optional
from typing import Tuple

from logmetrics.core.cfn import CfnResource
from logmetrics.core.construct import Construct
from logmetrics.logs.units import MetricFilterUnits


@dataclass(frozen=True)
class DimensionProperty:
    key: str
    value: str


@dataclass(frozen=True)
class MetricTransformationProperty:
    metric_namespace: str
    metric_name: str
    metric_value: str
    unit: MetricFilterUnits
    default_value: Optional[float] = None
    dimensions: Optional[Tuple[DimensionProperty, ...]] = None


@dataclass(frozen=True)
class CfnMetricFilterProps:
    log_group_name: str
    filter_pattern: str
    # The service accepts exactly one transformation per filter.
    metric_transformations: Tuple[MetricTransformationProperty]
    filter_name: Optional[str] = None


@dataclass(frozen=True)
class CfnLogGroupProps:
    log_group_name: Optional[str] = None
    retention_in_days: Optional[int] = None


class CfnMetricFilter(CfnResource):
    resource_type = "AWS::Logs::MetricFilter"

    def __init__(self, scope: Construct, id: str, *, properties: CfnMetricFilterProps) -> None:
        super().__init__(scope, id, properties=properties)


class CfnLogGroup(CfnResource):
    resource_type = "AWS::Logs::LogGroup"

    def __init__(self, scope: Construct, id: str, *, properties: CfnLogGroupProps) -> None:
        super().__init__(scope, id, properties=properties)
