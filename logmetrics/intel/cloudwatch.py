"""
Read back deployed CloudWatch Logs metric filters and compare them with a
synthesized template.

This module only calls read APIs (logs:DescribeMetricFilters).
"""

import logging
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from typing import Any
from typing import Dict
from typing import List
from typing import Optional
from typing import Tuple

import boto3
import botocore.config
import botocore.exceptions

from logmetrics.logs.generated import CfnMetricFilter
from logmetrics.logs.units import MetricFilterUnits
from logmetrics.util import aws_handle_regions
from logmetrics.util import timeit

logger = logging.getLogger(__name__)

COMPARED_FIELDS = (
    "filterPattern",
    "metricValue",
    "defaultValue",
    "unit",
    "dimensions",
)


def get_botocore_config() -> botocore.config.Config:
    return botocore.config.Config(
        read_timeout=360,
        retries={"mode": "standard"},
    )


class DriftStatus(str, Enum):
    MISSING = "missing"
    """Declared in the template but not found in the account."""

    CHANGED = "changed"
    """Found in the account with different settings."""


@dataclass(frozen=True)
class MetricFilterDrift:
    log_group_name: str
    metric_namespace: str
    metric_name: str
    status: DriftStatus
    differences: Dict[str, Tuple[Any, Any]] = field(default_factory=dict)
    """Field name -> (declared value, deployed value). Empty for MISSING."""

    def describe(self) -> str:
        target = f"{self.log_group_name} -> {self.metric_namespace}/{self.metric_name}"
        if self.status == DriftStatus.MISSING:
            return f"{target}: not deployed"
        changes = ", ".join(
            f"{name}: {declared!r} != {deployed!r}"
            for name, (declared, deployed) in self.differences.items()
        )
        return f"{target}: {changes}"


@timeit
@aws_handle_regions
def get_metric_filters(
    boto3_session: boto3.Session,
    region: str,
    log_group_name: Optional[str] = None,
) -> List[Dict[str, Any]]:
    client = boto3_session.client(
        "logs", region_name=region, config=get_botocore_config()
    )
    paginator = client.get_paginator("describe_metric_filters")
    kwargs = {}
    if log_group_name:
        kwargs["logGroupName"] = log_group_name

    metric_filters = []
    for page in paginator.paginate(**kwargs):
        metric_filters.extend(page.get("metricFilters", []))
    return metric_filters


def transform_metric_filters(raw_filters: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Flatten describe_metric_filters output to one dict per filter.

    A filter carries a single metric transformation, so its fields are lifted to the
    top level. A missing unit is reported as "None", which is what the service applies.
    """
    transformed = []
    for mf in raw_filters:
        transformations = mf.get("metricTransformations", [])
        if not transformations:
            logger.warning(
                "Metric filter '%s' has no metric transformation, skipping.",
                mf.get("filterName"),
            )
            continue
        mt = transformations[0]
        transformed.append(
            {
                "filterName": mf.get("filterName"),
                "logGroupName": mf["logGroupName"],
                "filterPattern": mf.get("filterPattern", ""),
                "metricNamespace": mt["metricNamespace"],
                "metricName": mt["metricName"],
                "metricValue": mt["metricValue"],
                "defaultValue": mt.get("defaultValue"),
                "unit": mt.get("unit", MetricFilterUnits.NONE.value),
                "dimensions": mt.get("dimensions") or None,
            },
        )
    return transformed


def get_declared_metric_filters(template: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Extract metric filters from a synthesized template, in the transformed shape."""
    declared = []
    for logical_id, resource in template.get("Resources", {}).items():
        if resource.get("Type") != CfnMetricFilter.resource_type:
            continue
        props = resource["Properties"]
        mt = props["MetricTransformations"][0]
        dimensions = {d["Key"]: d["Value"] for d in mt.get("Dimensions", [])}
        declared.append(
            {
                "logicalId": logical_id,
                "filterName": props.get("FilterName"),
                "logGroupName": props["LogGroupName"],
                "filterPattern": props["FilterPattern"],
                "metricNamespace": mt["MetricNamespace"],
                "metricName": mt["MetricName"],
                "metricValue": mt["MetricValue"],
                "defaultValue": mt.get("DefaultValue"),
                "unit": mt.get("Unit", MetricFilterUnits.NONE.value),
                "dimensions": dimensions or None,
            },
        )
    return declared


def _filter_key(mf: Dict[str, Any]) -> Tuple[str, str, str]:
    return (mf["logGroupName"], mf["metricNamespace"], mf["metricName"])


def _values_differ(declared: Any, deployed: Any) -> bool:
    if isinstance(declared, (int, float)) and isinstance(deployed, (int, float)):
        return float(declared) != float(deployed)
    return declared != deployed


def compare_metric_filters(
    declared: List[Dict[str, Any]],
    deployed: List[Dict[str, Any]],
) -> List[MetricFilterDrift]:
    """
    Compare declared filters against deployed ones.

    Filters are matched on (log group, metric namespace, metric name). Deployed filters
    with no declared counterpart are not reported: they may belong to another stack.
    """
    deployed_by_key: Dict[Tuple[str, str, str], Dict[str, Any]] = {}
    for mf in deployed:
        deployed_by_key.setdefault(_filter_key(mf), mf)

    drift = []
    for mf in declared:
        log_group_name, namespace, name = _filter_key(mf)
        live = deployed_by_key.get((log_group_name, namespace, name))
        if live is None:
            drift.append(
                MetricFilterDrift(log_group_name, namespace, name, DriftStatus.MISSING),
            )
            continue

        fields_to_check = list(COMPARED_FIELDS)
        if mf.get("filterName") is not None:
            fields_to_check.append("filterName")
        differences = {
            f: (mf.get(f), live.get(f))
            for f in fields_to_check
            if _values_differ(mf.get(f), live.get(f))
        }
        if differences:
            drift.append(
                MetricFilterDrift(
                    log_group_name, namespace, name, DriftStatus.CHANGED, differences
                ),
            )
    return drift


@timeit
def detect_drift(
    boto3_session: boto3.Session,
    region: str,
    template: Dict[str, Any],
) -> List[MetricFilterDrift]:
    """Fetch the deployed filters for each declared log group and compare."""
    declared = get_declared_metric_filters(template)
    log_group_names = sorted({mf["logGroupName"] for mf in declared})
    logger.info(
        "Checking %d declared metric filters across %d log groups in region '%s'.",
        len(declared),
        len(log_group_names),
        region,
    )

    deployed: List[Dict[str, Any]] = []
    for log_group_name in log_group_names:
        try:
            raw = get_metric_filters(boto3_session, region, log_group_name=log_group_name)
        except botocore.exceptions.ClientError as e:
            if e.response["Error"]["Code"] != "ResourceNotFoundException":
                raise
            logger.warning(
                "Log group '%s' does not exist in region '%s'.", log_group_name, region
            )
            raw = []
        deployed.extend(transform_metric_filters(raw))

    drift = compare_metric_filters(declared, deployed)
    logger.info("Found %d drifted metric filters in region '%s'.", len(drift), region)
    return drift
