"""Agent system: definitions, run loop, ReAct tool calling, customer service."""

from skyagent.agent.agent import AgentConfig, AgentDefinition
from skyagent.agent.classifier import ActionClassifier, KeywordActionClassifier
from skyagent.agent.customer_service import CustomerServiceAgent
from skyagent.agent.parsing import ParsedToolCall, ToolCallParser, TwoStageToolCallParser
from skyagent.agent.react import ReActAgent, StepError
from skyagent.agent.runtime import AgentRuntime, RunContext, RunOutcome, RunResult
from skyagent.agent.service import AgentService
from skyagent.agent.state import AgentState
from skyagent.agent.tool_call import ToolCallAgent

__all__ = [
    "AgentConfig",
    "AgentDefinition",
    "ActionClassifier",
    "KeywordActionClassifier",
    "CustomerServiceAgent",
    "ParsedToolCall",
    "ToolCallParser",
    "TwoStageToolCallParser",
    "ReActAgent",
    "StepError",
    "AgentRuntime",
    "RunContext",
    "RunOutcome",
    "RunResult",
    "AgentService",
    "AgentState",
    "ToolCallAgent",
]
