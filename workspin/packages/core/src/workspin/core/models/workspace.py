"""协作空间模型 -- Project / ChannelTab / Channel / User

协调器只读取这些文档：用于鉴权（成员关系）和生成 contextPath。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import TaskPriority, UserRole


class User(BaseModel):
    """用户"""

    user_id: str
    name: str = ""
    email: str = ""
    role: UserRole = Field(default=UserRole.EMPLOYEE)

    @property
    def display_name(self) -> str:
        """活动消息中使用的名称：优先 name，否则 email"""
        return self.name or self.email

    def to_wire(self) -> dict[str, str]:
        return {"id": self.user_id, "name": self.name, "email": self.email}


class Channel(BaseModel):
    """频道"""

    channel_id: str
    channel_name: str
    channel_description: str = ""
    members: list[str] = Field(default_factory=list)
    tabs: list[str] = Field(default_factory=list)
    is_private: bool = False
    created_by: str = ""


class ChannelTab(BaseModel):
    """频道下的标签页"""

    tab_id: str
    channel_id: str
    tab_name: str
    members: list[str] = Field(default_factory=list)
    is_default: bool = False
    is_private: bool = False
    created_by: str = ""


class Project(BaseModel):
    """项目，挂在某个 channel/tab 下"""

    project_id: str
    name: str
    channel_id: str
    tab_id: str
    created_by: str = ""
    description: str = ""
    color: str = "#6C63FF"
    status: str = "active"
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM)
    start_date: datetime | None = None
    end_date: datetime | None = None


def build_context_path(channel: Channel, tab: ChannelTab) -> str:
    """通知中展示的上下文路径，例如 "Workspin Channel / Main Board" """
    return f"{channel.channel_name} / {tab.tab_name}"
