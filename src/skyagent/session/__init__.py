"""Event wire between the agent runtime and its listeners."""

from skyagent.session.wire import EventType, TextStream, Wire, WireEvent

__all__ = ["EventType", "TextStream", "Wire", "WireEvent"]
