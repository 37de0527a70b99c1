"""Roster 同步核心：获取、视图派生、会话发起与激活编排。"""

from .controller import RosterController
from .state import RosterState

__all__ = ["RosterController", "RosterState"]
