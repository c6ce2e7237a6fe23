# config.py
from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

load_dotenv(override=True)


class Settings(BaseSettings):
    """
    Defines the application's configuration settings.
    Every value can be overridden through the environment or a local .env file.
    """
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    # --- Upstream Provider (Groq, OpenAI-compatible endpoint) ---
    # Optional bootstrap credential. When absent, callers must POST /set-credential first.
    groq_api_key: str | None = None
    groq_base_url: str = Field(
        default='https://api.groq.com/openai/v1',
        description="Base URL of Groq's OpenAI-compatible API."
    )
    temperature: float = 0.7
    max_tokens: int = 4096
    # The relay never retries on its own; the SDK default of 2 is switched off.
    upstream_max_retries: int = 0
    # Seconds to wait for the next fragment before giving up. None disables the check.
    fragment_idle_timeout: float | None = None

    # --- Conversation Context ---
    system_prompt: str = (
        "You are a helpful AI assistant. Provide clear, accurate, and helpful responses. "
        "When showing code, use proper formatting."
    )
    context_window_turns: int = Field(
        default=10,
        ge=1,
        description="Number of trailing turns (5 user/assistant exchanges) sent upstream."
    )
    default_session_id: str = 'default'
    default_model: str = 'llama-3-70b'

    # --- Server ---
    cors_origins: List[str] = ['*']
    host: str = '0.0.0.0'
    port: int = 5000

    # --- General Settings ---
    log_level: str = "INFO"


try:
    settings = Settings()
except Exception as e:
    print(f"FATAL: Failed to load application settings. Error: {e}")
    print("Please ensure your .env file or environment variables hold valid values.")
    raise
