import json
import logging

import pytest

from ehr_servicegen.config.loader import load_tool_config
from ehr_servicegen.log import LOGGER_NAME


@pytest.fixture(autouse=True)
def reset_package_logger():
    """CLI runs install handlers and disable propagation; undo that between tests."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def capability_doc():
    def _build(resources, publisher="Acme", extra_rest=None):
        doc = {
            "resourceType": "CapabilityStatement",
            "status": "active",
            "kind": "instance",
            "fhirVersion": "4.0.1",
            "rest": [
                {
                    "mode": "server",
                    "resource": [
                        {"type": rtype, "supportedProfile": list(profiles)}
                        for rtype, profiles in resources
                    ],
                }
            ],
        }
        if extra_rest:
            doc["rest"].extend(extra_rest)
        if publisher is not None:
            doc["publisher"] = publisher
        return doc

    return _build


@pytest.fixture
def write_capability(tmp_path, capability_doc):
    def _write(resources, publisher="Acme", filename="capability.json", **kwargs):
        path = tmp_path / filename
        path.write_text(json.dumps(capability_doc(resources, publisher=publisher, **kwargs)), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def tool_config():
    return load_tool_config()
