import io
import json
import logging

import pytest
import structlog

from contract_deployer.logging_config import setup_logging, tag_deployment


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


def test_json_lines_carry_deployment_context():
    stream = io.StringIO()
    setup_logging("INFO", log_format="json", stream=stream)

    with structlog.contextvars.bound_contextvars(request_id="req-1", network="arbitrum-sepolia"):
        logging.getLogger("contract_deployer.core.deployment").info("Deployment attempt 1 of 3")

    line = json.loads(stream.getvalue().splitlines()[-1])
    assert line["event"] == "Deployment attempt 1 of 3"
    assert line["request_id"] == "req-1"
    assert line["network"] == "arbitrum-sepolia"
    assert line["level"] == "info"


def test_console_prefixes_deployment_context():
    stream = io.StringIO()
    setup_logging("INFO", log_format="console", stream=stream)

    with structlog.contextvars.bound_contextvars(request_id="req-2", network="arbitrum-mainnet"):
        logging.getLogger("contract_deployer.core.rpc").warning("RPC failed")

    assert "[req-2 arbitrum-mainnet] RPC failed" in stream.getvalue()


def test_level_filters_and_handler_replaces_existing():
    stream = io.StringIO()
    handler = setup_logging("WARNING", log_format="json", stream=stream)

    logging.getLogger("contract_deployer").info("hidden")

    assert logging.getLogger().handlers == [handler]
    assert stream.getvalue() == ""


def test_tag_deployment_without_context_is_unchanged():
    event = {"event": "http_request", "status": 200}

    assert tag_deployment(None, "info", dict(event)) == event
