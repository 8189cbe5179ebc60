"""create-agent-chat-app -- generate a web app + LangGraph agents monorepo."""

__version__ = "0.1.0"
