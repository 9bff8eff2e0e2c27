import json
import unittest.mock

import pytest
from typer.testing import CliRunner

from logmetrics.cli import app
from logmetrics.cli import load_app
from logmetrics.core.construct import App
from logmetrics.errors import AppLoadError
from logmetrics.intel.cloudwatch import DriftStatus
from logmetrics.intel.cloudwatch import MetricFilterDrift

runner = CliRunner()


def test_load_app_from_returning_callable():
    declared = load_app("tests.data.apps:build")

    assert isinstance(declared, App)
    assert [s.stack_name for s in declared.stacks] == ["Monitoring"]


def test_load_app_from_populating_callable():
    declared = load_app("tests.data.apps:populate")

    assert [s.stack_name for s in declared.stacks] == ["Populated"]


@pytest.mark.parametrize(
    "entrypoint, message",
    [
        ("tests.data.apps", "expected 'module:callable'"),
        ("tests.data.nonexistent:build", "Unable to import"),
        ("tests.data.apps:missing", "is not a callable"),
        ("tests.data.apps:not_an_app", "expected an App"),
    ],
)
def test_load_app_errors(entrypoint, message):
    with pytest.raises(AppLoadError, match=message):
        load_app(entrypoint)


def test_version_flag():
    with unittest.mock.patch(
        'logmetrics.version.get_version_string',
        return_value='logmetrics 1.2.3 (botocore 1.34.0)',
    ):
        result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert "logmetrics 1.2.3 (botocore 1.34.0)" in result.stdout


def test_units_command_lists_every_unit():
    result = runner.invoke(app, ["units"])

    assert result.exit_code == 0
    lines = result.stdout.split()
    assert "None" in lines
    assert "Count/Second" in lines
    assert len(lines) == 27


def test_synth_to_stdout():
    result = runner.invoke(app, ["synth", "tests.data.apps:build", "--stdout"])

    assert result.exit_code == 0
    templates = json.loads(result.stdout)
    resources = templates["Monitoring"]["Resources"]
    assert len(resources) == 1
    (resource,) = resources.values()
    assert resource["Type"] == "AWS::Logs::MetricFilter"
    assert resource["Properties"]["MetricTransformations"][0]["Unit"] == "Count"


def test_synth_writes_templates(tmp_path):
    outdir = tmp_path / "out"

    result = runner.invoke(app, ["synth", "tests.data.apps:build", "--outdir", str(outdir)])

    assert result.exit_code == 0
    assert (outdir / "Monitoring.template.json").exists()
    assert str(outdir / "Monitoring.template.json") in result.stdout


def test_synth_validation_error_exits():
    result = runner.invoke(app, ["synth", "tests.data.apps:too_many_dimensions", "--stdout"])

    assert result.exit_code == 1
    assert "maximum of 3 Dimensions" in result.output


def test_diff_reports_drift_and_fails():
    drift = MetricFilterDrift(
        "/aws/lambda/process-orders", "App", "Errors", DriftStatus.MISSING
    )
    with (
        unittest.mock.patch("logmetrics.cli.boto3.Session") as session,
        unittest.mock.patch("logmetrics.cli.detect_drift", return_value=[drift]) as detect,
    ):
        result = runner.invoke(
            app, ["diff", "tests.data.apps:build", "--region", "eu-west-1"]
        )

    assert result.exit_code == 1
    assert "[Monitoring] /aws/lambda/process-orders -> App/Errors: not deployed" in result.stdout
    session.assert_called_once_with(profile_name=None, region_name="eu-west-1")
    assert detect.call_args.args[1] == "eu-west-1"


def test_diff_without_drift_succeeds():
    with (
        unittest.mock.patch("logmetrics.cli.boto3.Session"),
        unittest.mock.patch("logmetrics.cli.detect_drift", return_value=[]),
    ):
        result = runner.invoke(
            app, ["diff", "tests.data.apps:build", "--region", "eu-west-1"]
        )

    assert result.exit_code == 0
    assert "No drift detected." in result.stdout
