"""Allow ``python -m create_agent_chat_app``."""

from create_agent_chat_app.cli import main

main()
