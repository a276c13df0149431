"""配置模块 -- 可通过环境变量覆盖

只包含部署相关配置（数据目录、数据库路径、列表上限、日志格式与级别）。
字段长度、临期窗口、排序权重等领域常量不可配置，定义在各自模块中。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("TASKBOARD_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "TASKBOARD_DB_PATH",
        str(_get_base_dir() / "sqlite" / "taskboard.db"),
    )


def get_list_limit() -> int:
    """看板最多展示的任务数（按紧急程度排序后截断）"""
    return int(os.environ.get("TASKBOARD_LIST_LIMIT", "200"))


def get_log_format() -> str:
    """日志渲染模式："json"（生产）或 "dev"（默认）"""
    return os.environ.get("TASKBOARD_LOG_FORMAT", "dev")


def get_log_level() -> str:
    """根 logger 级别名"""
    return os.environ.get("TASKBOARD_LOG_LEVEL", "INFO")


# 评论/标题等在日志中的预览截断长度
LOG_PREVIEW_LENGTH: int = 80
