from unittest.mock import MagicMock

from botocore.exceptions import ClientError
from botocore.exceptions import EndpointConnectionError

from logmetrics.core.construct import App
from logmetrics.core.construct import Stack
from logmetrics.core.synth import synthesize_stack
from logmetrics.intel import cloudwatch
from logmetrics.intel.cloudwatch import DriftStatus
from logmetrics.logs.log_group import LogGroup
from tests.data.aws.cloudwatch import DESCRIBE_METRIC_FILTERS
from tests.data.aws.cloudwatch import TRANSFORMED_METRIC_FILTERS

TEST_REGION = "eu-west-1"


def _template(**overrides):
    stack = Stack(App(), "Monitoring")
    props = {
        "filter_pattern": "ERROR",
        "metric_namespace": "App",
        "metric_name": "Errors",
        "unit": "Count",
    }
    props.update(overrides)
    LogGroup.from_log_group_name(stack, "Orders", "/aws/lambda/process-orders").add_metric_filter(
        "Errors", **props
    )
    return synthesize_stack(stack)


def _session_returning(pages):
    boto3_session = MagicMock()
    paginator = boto3_session.client.return_value.get_paginator.return_value
    paginator.paginate.return_value = pages
    return boto3_session


def test_get_metric_filters_paginates():
    boto3_session = _session_returning(
        [
            {"metricFilters": DESCRIBE_METRIC_FILTERS[:1]},
            {"metricFilters": DESCRIBE_METRIC_FILTERS[1:]},
        ],
    )

    result = cloudwatch.get_metric_filters(boto3_session, TEST_REGION, log_group_name="/aws/lambda/process-orders")

    assert result == DESCRIBE_METRIC_FILTERS
    boto3_session.client.return_value.get_paginator.assert_called_once_with("describe_metric_filters")
    boto3_session.client.return_value.get_paginator.return_value.paginate.assert_called_once_with(
        logGroupName="/aws/lambda/process-orders",
    )


def test_get_metric_filters_endpoint_connection_error():
    boto3_session = MagicMock()
    paginator = boto3_session.client.return_value.get_paginator.return_value
    paginator.paginate.side_effect = EndpointConnectionError(endpoint_url="https://logs.mx-central-1.amazonaws.com")

    assert cloudwatch.get_metric_filters(boto3_session, "mx-central-1") == []


def test_transform_metric_filters():
    assert cloudwatch.transform_metric_filters(DESCRIBE_METRIC_FILTERS) == TRANSFORMED_METRIC_FILTERS


def test_transform_skips_filters_without_transformations():
    raw = [{"filterName": "broken", "logGroupName": "/x", "metricTransformations": []}]

    assert cloudwatch.transform_metric_filters(raw) == []


def test_get_declared_metric_filters():
    declared = cloudwatch.get_declared_metric_filters(_template(dimensions={"Fn": "$fn"}))

    assert len(declared) == 1
    mf = declared[0]
    assert mf["logGroupName"] == "/aws/lambda/process-orders"
    assert mf["metricValue"] == "1"
    assert mf["unit"] == "Count"
    assert mf["dimensions"] == {"Fn": "$fn"}
    assert mf["filterName"] is None


def test_compare_in_sync():
    declared = cloudwatch.get_declared_metric_filters(_template())

    assert cloudwatch.compare_metric_filters(declared, TRANSFORMED_METRIC_FILTERS) == []


def test_compare_reports_missing_filter():
    declared = cloudwatch.get_declared_metric_filters(_template(metric_name="Timeouts"))

    drift = cloudwatch.compare_metric_filters(declared, TRANSFORMED_METRIC_FILTERS)

    assert len(drift) == 1
    assert drift[0].status == DriftStatus.MISSING
    assert drift[0].metric_name == "Timeouts"
    assert drift[0].describe() == "/aws/lambda/process-orders -> App/Timeouts: not deployed"


def test_compare_reports_changed_fields():
    declared = cloudwatch.get_declared_metric_filters(_template(filter_pattern="FATAL", unit=None))

    drift = cloudwatch.compare_metric_filters(declared, TRANSFORMED_METRIC_FILTERS)

    assert len(drift) == 1
    assert drift[0].status == DriftStatus.CHANGED
    assert drift[0].differences == {
        "filterPattern": ("FATAL", "ERROR"),
        "unit": ("None", "Count"),
    }


def test_compare_treats_equal_numbers_as_equal():
    declared = [dict(TRANSFORMED_METRIC_FILTERS[1], defaultValue=0)]

    assert cloudwatch.compare_metric_filters(declared, TRANSFORMED_METRIC_FILTERS) == []


def test_detect_drift_handles_missing_log_group():
    boto3_session = MagicMock()
    paginator = boto3_session.client.return_value.get_paginator.return_value
    paginator.paginate.side_effect = ClientError(
        {"Error": {"Code": "ResourceNotFoundException", "Message": "The specified log group does not exist."}},
        "DescribeMetricFilters",
    )

    drift = cloudwatch.detect_drift(boto3_session, TEST_REGION, _template())

    assert [d.status for d in drift] == [DriftStatus.MISSING]


def test_detect_drift_in_sync():
    boto3_session = _session_returning([{"metricFilters": DESCRIBE_METRIC_FILTERS[:1]}])

    assert cloudwatch.detect_drift(boto3_session, TEST_REGION, _template()) == []
