import logging

from logging_config import ContextualFormatter, reading_extra


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="services.readings",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Sensor data stored",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_appends_known_extras_in_order() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")

    output = formatter.format(_record(history_key="-Nabc", ntu=5, unrelated="x"))

    assert output == "Sensor data stored | ntu=5 history_key=-Nabc"


def test_formatter_skips_none_values() -> None:
    formatter = ContextualFormatter(fmt="%(message)s", extra_keys=["reason"])

    assert formatter.format(_record(reason=None)) == "Sensor data stored"


def test_reading_extra_maps_wire_fields_to_log_keys() -> None:
    extra = reading_extra({"temperature": 25, "levelPercent": 80, "turbStatus": "KERUH", "timestamp": 1})

    assert extra == {"temperature": 25, "level_percent": 80, "turb_status": "KERUH"}
