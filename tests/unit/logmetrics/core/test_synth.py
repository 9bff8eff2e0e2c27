import json
import os

import pytest

from logmetrics.core.cfn import CfnResource
from logmetrics.core.cfn import make_logical_id
from logmetrics.core.cfn import render_properties
from logmetrics.core.cfn import to_cfn_key
from logmetrics.core.construct import App
from logmetrics.core.construct import Stack
from logmetrics.core.synth import synthesize
from logmetrics.core.synth import synthesize_stack
from logmetrics.core.synth import write_templates
from logmetrics.errors import ConstructIdConflictError
from logmetrics.logs.generated import DimensionProperty
from logmetrics.logs.generated import MetricTransformationProperty
from logmetrics.logs.log_group import LogGroup
from logmetrics.logs.units import MetricFilterUnits


def _app_with_filter():
    app = App()
    stack = Stack(app, "Monitoring")
    group = LogGroup(stack, "Orders", log_group_name="/aws/lambda/orders")
    mf = group.add_metric_filter(
        "Errors",
        filter_pattern="ERROR",
        metric_namespace="App",
        metric_name="Errors",
    )
    return app, stack, group, mf


def test_to_cfn_key():
    assert to_cfn_key("log_group_name") == "LogGroupName"
    assert to_cfn_key("unit") == "Unit"


def test_render_properties_omits_none_and_renders_enums():
    mt = MetricTransformationProperty(
        metric_namespace="App",
        metric_name="Errors",
        metric_value="1",
        unit=MetricFilterUnits.COUNT,
        dimensions=(DimensionProperty("K", "V"),),
    )

    assert render_properties(mt) == {
        "MetricNamespace": "App",
        "MetricName": "Errors",
        "MetricValue": "1",
        "Unit": "Count",
        "Dimensions": [{"Key": "K", "Value": "V"}],
    }


def test_logical_id_for_top_level_component():
    assert make_logical_id(["My-Bucket"]) == "MyBucket"


def test_logical_id_is_stable_and_hides_resource_component():
    first = make_logical_id(["Orders", "Errors", "Resource"])
    second = make_logical_id(["Orders", "Errors", "Resource"])

    assert first == second
    assert first.startswith("OrdersErrors")
    assert len(first) == len("OrdersErrors") + 8


def test_logical_ids_differ_for_paths_that_read_the_same():
    assert make_logical_id(["A", "BC"]) != make_logical_id(["AB", "C"])


def test_logical_id_of_empty_path_fails():
    with pytest.raises(ValueError):
        make_logical_id([])


@pytest.mark.parametrize("component", ["--", "//", "..."])
def test_logical_id_without_alphanumerics_fails(component):
    with pytest.raises(ConstructIdConflictError, match="no alphanumeric characters"):
        make_logical_id([component])


def test_synthesize_stack_renders_every_resource():
    _, stack, group, mf = _app_with_filter()

    resources = synthesize_stack(stack)["Resources"]

    assert resources[group.resource.logical_id]["Type"] == "AWS::Logs::LogGroup"
    assert resources[mf.resource.logical_id]["Type"] == "AWS::Logs::MetricFilter"
    assert "DependsOn" not in resources[mf.resource.logical_id]


def test_dependencies_render_as_depends_on():
    _, stack, group, mf = _app_with_filter()
    mf.add_dependency(group)

    resources = synthesize_stack(stack)["Resources"]

    assert resources[mf.resource.logical_id]["DependsOn"] == [group.resource.logical_id]


def test_stacks_are_synthesized_separately():
    app, _, _, _ = _app_with_filter()
    Stack(app, "Empty")

    templates = synthesize(app)

    assert list(templates) == ["Monitoring", "Empty"]
    assert templates["Empty"] == {"Resources": {}}


def test_logical_id_collision_is_rejected():
    app = App()
    stack = Stack(app, "Stack")
    LogGroup(stack, "a-b", log_group_name="one")
    LogGroup(stack, "ab", log_group_name="two")
    # Both render to a readable "ab" prefix but the hash keeps them apart.
    assert len(synthesize_stack(stack)["Resources"]) == 2

    other = Stack(app, "Other")
    CfnResource(other, "a-b", properties=None)
    CfnResource(other, "ab", properties=None)
    with pytest.raises(ConstructIdConflictError, match="Logical id 'ab'"):
        synthesize_stack(other)


def test_write_templates(tmp_path):
    app, _, _, mf = _app_with_filter()

    paths = write_templates(app, str(tmp_path / "out"))

    assert paths == [os.path.join(str(tmp_path / "out"), "Monitoring.template.json")]
    with open(paths[0], encoding="utf-8") as fh:
        template = json.load(fh)
    assert mf.resource.logical_id in template["Resources"]
