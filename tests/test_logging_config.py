# tests/test_logging_config.py
from config.logging_config import build_logging_config


def test_console_only_by_default():
    config = build_logging_config("DEBUG", None)

    assert list(config["handlers"]) == ["console"]
    assert config["loggers"]["services"]["level"] == "DEBUG"
    assert config["loggers"]["db"]["handlers"] == ["console"]


def test_file_handler_creates_directory(tmp_path):
    log_file = tmp_path / "logs" / "strivio.log"
    config = build_logging_config("INFO", str(log_file))

    assert (tmp_path / "logs").is_dir()
    assert config["handlers"]["file"]["filename"] == str(log_file)
    assert config["loggers"]["services"]["handlers"] == ["console", "file"]
