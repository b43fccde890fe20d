"""
Application Modules.

- backend/: Configuration, logging, conversation gate, Langflow client,
  reply delivery and the FastAPI application
- telegram/: Telegram bot integration (aiogram v3)
"""
