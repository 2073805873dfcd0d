"""Command-line surface."""

import pytest
from typer.testing import CliRunner

from ehr_servicegen.cli import registry
from ehr_servicegen.cli.app import build_app

PATIENT_OBS = [("Patient", ["P1", "P2"]), ("Observation", ["P2", "P3"])]


@pytest.fixture
def app(monkeypatch):
    monkeypatch.delenv("EHR_SERVICEGEN_CONFIG", raising=False)
    return build_app()


@pytest.fixture
def runner():
    return CliRunner()


def test_commands_are_registered(app):
    assert {"generate", "profiles"} <= set(registry.names())


def test_generate_from_capability_statement(app, runner, tmp_path, write_capability):
    cap = write_capability(PATIENT_OBS, publisher="Acme")
    out = tmp_path / "out"
    result = runner.invoke(app, ["generate", "--capability-statement", str(cap), "--output", str(out)])

    assert result.exit_code == 0, result.output
    assert "Generation Summary" in result.output
    assert (out / "Acme-service" / "service.yaml").exists()


def test_generate_without_name_exits_non_zero(app, runner, tmp_path, write_capability):
    cap = write_capability(PATIENT_OBS, publisher=None)
    result = runner.invoke(app, ["generate", "--capability-statement", str(cap), "--output", str(tmp_path / "o")])

    assert result.exit_code == 1
    assert "EHR name is required" in result.output
    assert not (tmp_path / "o").exists()


def test_generate_rejects_unknown_option(app, runner, tmp_path):
    result = runner.invoke(app, ["generate", "--ehr-name", "acme", "--colour", "blue", "--output", str(tmp_path)])
    assert result.exit_code == 2


def test_generate_reports_missing_file_and_continues(app, runner, tmp_path):
    result = runner.invoke(
        app,
        [
            "generate",
            "--ehr-name", "acme",
            "--included-profile", "P1",
            "--included-profile", "P2",
            "--capability-statement", str(tmp_path / "missing.json"),
            "--output", str(tmp_path / "out"),
        ],
    )
    assert result.exit_code == 0, result.output
    assert "NotFoundError" in result.output
    assert (tmp_path / "out" / "acme-service" / "README.md").exists()


def test_profiles_command(app, runner, write_capability):
    cap = write_capability(PATIENT_OBS, publisher="Acme")
    result = runner.invoke(app, ["profiles", str(cap)])

    assert result.exit_code == 0, result.output
    assert "Supported Profiles" in result.output
    assert "Acme" in result.output
    assert "P3" in result.output


def test_profiles_command_parse_error(app, runner, tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text('{"resourceType": "Patient"}', encoding="utf-8")
    result = runner.invoke(app, ["profiles", str(bad), "--ehr-name", "acme"])

    assert result.exit_code == 1
    assert "Could not read capability statement" in result.output


def test_building_the_app_twice_keeps_one_command_each(app):
    assert build_app() is app
    assert sorted(registry.names()) == ["generate", "profiles"]
    with pytest.raises(ValueError):
        registry.add("generate", lambda: None)


def test_generate_with_blank_project_name(app, runner, tmp_path):
    out = tmp_path / "out"
    result = runner.invoke(app, ["generate", "--ehr-name", "acme", "--project-name", "", "--output", str(out)])

    assert result.exit_code == 0, result.output
    assert (out / "acme-service" / "service.yaml").exists()
    assert not (out / "service.yaml").exists()


def test_generate_keeps_publisher_folder_inside_output(app, runner, tmp_path, write_capability):
    cap = write_capability(PATIENT_OBS, publisher="../../escaped")
    out = tmp_path / "a" / "b" / "out"
    result = runner.invoke(app, ["generate", "--capability-statement", str(cap), "--output", str(out)])

    assert result.exit_code == 0, result.output
    assert (out / "escaped-service" / "service.yaml").exists()
    assert not (tmp_path / "a" / "escaped-service").exists()
