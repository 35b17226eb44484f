"""Agent lifecycle states."""

from __future__ import annotations

import enum


class AgentState(enum.Enum):
    """Where an agent is in its run.

    COMPLETED, ERROR, TIMEOUT and STOPPED end a run. RUNNING, THINKING,
    ACTING and WAITING mean a run is in progress and a new one must be
    rejected.
    """

    IDLE = ("idle", "空闲状态")
    RUNNING = ("running", "运行状态")
    THINKING = ("thinking", "思考状态")
    ACTING = ("acting", "执行状态")
    WAITING = ("waiting", "等待状态")
    COMPLETED = ("completed", "完成状态")
    ERROR = ("error", "错误状态")
    TIMEOUT = ("timeout", "超时状态")
    STOPPED = ("stopped", "停止状态")

    def __init__(self, code: str, description: str) -> None:
        self.code = code
        self.description = description

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL

    @property
    def is_active(self) -> bool:
        return self in _ACTIVE

    @classmethod
    def from_code(cls, code: str) -> AgentState:
        for state in cls:
            if state.code == code:
                return state
        raise ValueError(f"Unknown agent state code: {code!r}")

    def __str__(self) -> str:
        return self.code


_TERMINAL = frozenset(
    {AgentState.COMPLETED, AgentState.ERROR, AgentState.TIMEOUT, AgentState.STOPPED}
)
_ACTIVE = frozenset(
    {AgentState.RUNNING, AgentState.THINKING, AgentState.ACTING, AgentState.WAITING}
)
