"""User 模型 -- 仅用于协作者存在性校验与展示

注册、登录、密码均由外部系统负责，此处只保存稳定的 user_id。
"""

from datetime import datetime

from pydantic import BaseModel, Field


class User(BaseModel):
    """用户目录条目"""

    user_id: str = Field(min_length=1, description="稳定的用户标识")
    username: str = Field(min_length=1, description="用户名")
    display_name: str = Field(default="", description="展示名称")
    created_at: datetime = Field(description="写入时间")
