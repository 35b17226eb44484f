"""skyagent: ReAct customer-service agent engine for the Sky food-delivery platform."""

__version__ = "0.1.0"
