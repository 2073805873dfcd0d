"""Tool configuration loading and overlays."""

import pytest

from ehr_servicegen.config.loader import ConfigLoader, load_base_document, load_tool_config
from ehr_servicegen.config.schema import DEFAULT_IG_NAME, SERVICE_CONFIG_PATH, TEMPLATE_CONFIG_PATH
from ehr_servicegen.exceptions import ConfigurationError
from ehr_servicegen.utils import deep_merge, get_by_path, safe_dir_name, set_by_path, short_package_name


def test_base_document_has_stage_sections():
    base = load_base_document()
    assert get_by_path(base, TEMPLATE_CONFIG_PATH + ".project.package.org") == "healthcare"
    assert get_by_path(base, SERVICE_CONFIG_PATH + ".servicegen.config.port") == 9090


def test_default_tool_config(tool_config):
    assert tool_config.defaults.implementation_guide == DEFAULT_IG_NAME
    assert tool_config.http.timeout == 30
    assert tool_config.slice(TEMPLATE_CONFIG_PATH)["project"]["package"]["namePrefix"] == "health.fhir.templates"
    assert tool_config.slice("fhir.tools.unknown.config") == {}


def test_overlay_with_include_and_env(tmp_path, monkeypatch):
    monkeypatch.setenv("EHR_IG", "carinbb")
    (tmp_path / "common.yaml").write_text("http:\n  timeout: 5\n", encoding="utf-8")
    overlay = tmp_path / "overlay.yaml"
    overlay.write_text(
        "include: common.yaml\n"
        "defaults:\n"
        "  implementation_guide: ${EHR_IG}\n"
        "fhir:\n"
        "  tools:\n"
        "    template:\n"
        "      config:\n"
        "        project:\n"
        "          package:\n"
        "            org: acme\n",
        encoding="utf-8",
    )

    cfg = load_tool_config(overlay)

    assert cfg.http.timeout == 5
    assert cfg.defaults.implementation_guide == "carinbb"
    package = cfg.slice(TEMPLATE_CONFIG_PATH)["project"]["package"]
    assert package["org"] == "acme"
    # untouched base keys survive the deep merge
    assert package["namePrefix"] == "health.fhir.templates"


def test_missing_overlay_raises(tmp_path):
    with pytest.raises(ConfigurationError):
        ConfigLoader(tmp_path / "absent.yaml")


def test_non_mapping_root_raises(tmp_path):
    overlay = tmp_path / "list.yaml"
    overlay.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_tool_config(overlay)


def test_invalid_values_raise(tmp_path):
    overlay = tmp_path / "bad.yaml"
    overlay.write_text("http:\n  timeout: -1\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_tool_config(overlay)


def test_path_helpers():
    tree = {"a": {"b": 1}}
    set_by_path(tree, "a.c.d", [1, 2])
    assert get_by_path(tree, "a.c.d") == [1, 2]
    assert get_by_path(tree, "a.x", "dflt") == "dflt"
    set_by_path(tree, "a.b.e", True)
    assert tree["a"]["b"] == {"e": True}


def test_deep_merge_replaces_lists():
    merged = deep_merge({"a": {"x": [1], "y": 1}}, {"a": {"x": [2]}})
    assert merged == {"a": {"x": [2], "y": 1}}


def test_short_package_name():
    assert short_package_name("healthcare/health.fhir.r4.uscore501") == "health.fhir.r4.uscore501"
    assert short_package_name("plain") == "plain"


def test_safe_dir_name():
    assert safe_dir_name("acme-service") == "acme-service"
    assert safe_dir_name("HL7 International / FHIR Infrastructure") == "HL7 International-FHIR Infrastructure"
    assert safe_dir_name("../../escaped-service") == "escaped-service"
    assert safe_dir_name('Epic: "Sandbox"') == "Epic--Sandbox"
    for bad in ("..", "/", " . "):
        with pytest.raises(ValueError):
            safe_dir_name(bad)
