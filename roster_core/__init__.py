"""Roster Core 顶层包。

该包提供消息界面背后的客户端 roster 同步核心，
包括配置加载、领域模型、聊天后端适配、会话列表/联系人获取、
视图派生以及带单飞保护的会话发起。
"""

from roster_core.roster import RosterController

__all__ = ["RosterController"]
