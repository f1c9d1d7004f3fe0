"""Tests for logging setup."""

import logging
from dataclasses import replace

from askfolio.utils.config import config
from askfolio.utils.logging_config import get_logger, setup_logging


class TestLogging:
    def test_quiet_loggers_are_capped_at_warning(self):
        setup_logging(replace(config, log_level='DEBUG', quiet_loggers=['askfolio.tests.chatty_client']))
        assert logging.getLogger('askfolio.tests.chatty_client').level == logging.WARNING

    def test_quiet_loggers_follow_a_stricter_level(self):
        setup_logging(replace(config, log_level='ERROR', quiet_loggers=['askfolio.tests.strict_client']))
        assert logging.getLogger('askfolio.tests.strict_client').level == logging.ERROR

    def test_unknown_level_falls_back_to_info(self):
        assert get_logger('askfolio.tests.level', replace(config, log_level='chatty')).level == logging.INFO
