import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from sms_gateway.core.logging import LOG_FILE_NAME, PACKAGE_LOGGER, configure_logging
from sms_gateway.core.settings import Settings


@pytest.fixture()
def package_logger() -> Iterator[logging.Logger]:
    logger = logging.getLogger(PACKAGE_LOGGER)
    handlers = list(logger.handlers)
    level = logger.level
    yield logger
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)


def test_logs_append_to_smsserver_log(tmp_path: Path, package_logger: logging.Logger) -> None:
    configure_logging(Settings(log_path=str(tmp_path), _env_file=None))  # type: ignore[call-arg]

    logging.getLogger("sms_gateway.api.rejection").warning("Rejected request [replay]: test")
    for handler in package_logger.handlers:
        handler.flush()

    content = (tmp_path / LOG_FILE_NAME).read_text(encoding="utf-8")
    assert "Rejected request [replay]: test" in content


def test_reconfiguring_replaces_handler(tmp_path: Path, package_logger: logging.Logger) -> None:
    config = Settings(log_path=str(tmp_path), _env_file=None)  # type: ignore[call-arg]
    configure_logging(config)
    configure_logging(config)

    ours = [h for h in package_logger.handlers if getattr(h, "_sms_gateway_handler", False)]
    assert len(ours) == 1


def test_level_follows_settings(package_logger: logging.Logger) -> None:
    configure_logging(Settings(log_level="debug", _env_file=None))  # type: ignore[call-arg]
    assert package_logger.level == logging.DEBUG
