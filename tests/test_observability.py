"""配置与可观测性测试

测试内容：
1. 环境变量配置读取
2. trace_id 路径提取
3. structlog 初始化（dev / json）
4. Logfire 默认关闭
"""

import logging
from pathlib import Path

import structlog
from taskboard.core import config
from taskboard.gateway.middleware.logging_config import setup_logfire, setup_logging
from taskboard.gateway.middleware.trace_mw import extract_task_id


class TestConfig:
    """环境变量配置"""

    def test_default_db_path(self, monkeypatch):
        monkeypatch.delenv("TASKBOARD_DB_PATH", raising=False)
        monkeypatch.delenv("TASKBOARD_DATA_DIR", raising=False)
        assert config.get_db_path() == str(Path("data") / "sqlite" / "taskboard.db")

    def test_data_dir_override(self, monkeypatch, tmp_path):
        monkeypatch.delenv("TASKBOARD_DB_PATH", raising=False)
        monkeypatch.setenv("TASKBOARD_DATA_DIR", str(tmp_path))
        assert config.get_db_path() == str(tmp_path / "sqlite" / "taskboard.db")

    def test_db_path_override(self, monkeypatch):
        monkeypatch.setenv("TASKBOARD_DB_PATH", "/tmp/custom.db")
        assert config.get_db_path() == "/tmp/custom.db"

    def test_list_limit(self, monkeypatch):
        monkeypatch.delenv("TASKBOARD_LIST_LIMIT", raising=False)
        assert config.get_list_limit() == 200
        monkeypatch.setenv("TASKBOARD_LIST_LIMIT", "25")
        assert config.get_list_limit() == 25

    def test_log_settings(self, monkeypatch):
        monkeypatch.delenv("TASKBOARD_LOG_FORMAT", raising=False)
        monkeypatch.delenv("TASKBOARD_LOG_LEVEL", raising=False)
        assert config.get_log_format() == "dev"
        assert config.get_log_level() == "INFO"


class TestTraceExtraction:
    """trace_id 路径提取"""

    def test_task_path(self):
        task_id = "01JQ7Z5N6V8K2M4P9R3T5W7Y1A"
        assert extract_task_id(f"/api/tasks/{task_id}") == task_id
        assert extract_task_id(f"/api/tasks/{task_id}/complete") == task_id

    def test_non_task_paths(self):
        assert extract_task_id("/api/tasks") is None
        assert extract_task_id("/api/users/me/stats") is None
        assert extract_task_id("/api/tasks/short-id") is None


class TestLoggingSetup:
    """structlog 初始化"""

    def test_json_mode(self, monkeypatch):
        monkeypatch.setenv("TASKBOARD_LOG_FORMAT", "json")
        monkeypatch.setenv("TASKBOARD_LOG_LEVEL", "warning")
        setup_logging()
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert isinstance(
            root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter
        )

    def test_dev_mode_default_level(self, monkeypatch):
        monkeypatch.delenv("TASKBOARD_LOG_FORMAT", raising=False)
        monkeypatch.delenv("TASKBOARD_LOG_LEVEL", raising=False)
        setup_logging()
        assert logging.getLogger().level == logging.INFO

    def test_explicit_arguments_override_env(self, monkeypatch):
        monkeypatch.setenv("TASKBOARD_LOG_LEVEL", "error")
        setup_logging(log_format="json", log_level="debug")
        assert logging.getLogger().level == logging.DEBUG

    def test_access_log_quieted(self):
        """请求日志由中间件输出，uvicorn.access 只保留 WARNING 以上"""
        setup_logging(log_level="info")
        assert logging.getLogger("uvicorn.access").level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        setup_logging(log_level="chatty")
        assert logging.getLogger().level == logging.INFO

    def test_logfire_disabled_by_default(self, monkeypatch):
        monkeypatch.delenv("LOGFIRE_SEND_TO_LOGFIRE", raising=False)
        assert setup_logfire() is False
