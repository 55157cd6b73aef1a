import logging

from mobile_post_office.config.settings import Settings
from mobile_post_office.core.logging.builder import make_dict_config, setup_logging
from mobile_post_office.core.logging.handlers import LOG_FILE_NAME


def make_settings(tmp_path, **overrides) -> Settings:
    values = dict(
        LOG_FORMAT="json",
        LOG_LEVEL="INFO",
        LOG_TO_STDOUT=False,
        LOG_DIR=tmp_path,
        LOG_MAX_BYTES=1000,
        LOG_BACKUP_COUNT=1,
        ENV="development",
    )
    values.update(overrides)
    return Settings(**values)


def test_make_dict_config_contains_file_handlers(tmp_path):
    cfg = make_dict_config(make_settings(tmp_path))

    assert set(cfg["handlers"]) == {"console", "file", "error_file"}
    assert cfg["handlers"]["file"]["filename"].endswith(LOG_FILE_NAME)
    assert "json" in cfg["formatters"]
    assert cfg["loggers"]["sqlalchemy.engine"]["level"] == "WARNING"


def test_stdout_mode_has_no_file_handlers(tmp_path):
    cfg = make_dict_config(make_settings(tmp_path, LOG_TO_STDOUT=True))

    assert set(cfg["handlers"]) == {"console", "error_console"}
    assert cfg["handlers"]["console"]["stream"] == "ext://sys.stdout"


def test_text_format_uses_color_formatter(tmp_path):
    from mobile_post_office.core.logging.formatters import ColorFormatter

    cfg = make_dict_config(make_settings(tmp_path, LOG_FORMAT="TEXT"))
    assert cfg["formatters"]["standard"]["()"] is ColorFormatter


def test_setup_logging_creates_log_dir(restore_logging, tmp_path):
    settings = make_settings(tmp_path, LOG_DIR=tmp_path / "logs")
    assert not settings.LOG_DIR.exists()

    setup_logging(settings)

    assert settings.LOG_DIR.exists()
    assert logging.getLogger().handlers
