import json
import logging

import activity_log


def test_error_lines_carry_order_id_and_stack_trace(caplog):
    try:
        raise ValueError("boom")
    except ValueError as e:
        with caplog.at_level(logging.INFO, logger=activity_log.LOGGER_NAME):
            activity_log.log_error("update_order_failed", e, order_id="o-1", context={"fields": ["notes"]})
    record = caplog.records[-1]
    assert record.levelname == "ERROR"
    assert record.order_id == "o-1"
    assert record.context["error"] == "boom"
    assert "raise ValueError" in record.context["stack_trace"]


def test_caller_context_is_not_mutated(caplog):
    context = {"client_id": "C1"}
    with caplog.at_level(logging.INFO, logger=activity_log.LOGGER_NAME):
        activity_log.log_error("lookup_failed", RuntimeError("down"), context=context)
    assert context == {"client_id": "C1"}


def test_formatter_emits_one_valid_json_line(caplog):
    with caplog.at_level(logging.INFO, logger=activity_log.LOGGER_NAME):
        activity_log.log_action('status "Ejecutada" applied', context={"note": 'dijo "ok"'})
    line = activity_log.JsonLineFormatter().format(caplog.records[-1])
    payload = json.loads(line)
    assert payload["action"] == 'status "Ejecutada" applied'
    assert payload["order_id"] == "-"
    assert payload["context"] == {"note": 'dijo "ok"'}
    assert "\n" not in line
