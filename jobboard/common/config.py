"""
Configuration loader for the job board.

Loads all settings from environment variables (.env file).
Validates required settings and provides type-safe access.
"""

import os
from typing import List

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """
    Centralized configuration for the frontend and the core services.

    All values loaded from environment variables - NO SECRETS IN CODE.
    """

    # ===== MongoDB (job store) =====
    MONGODB_URI: str = os.getenv("MONGODB_URI", "")
    MONGO_DB_NAME: str = os.getenv("MONGO_DB_NAME", "jobofficer")
    JOBS_COLLECTION: str = os.getenv("JOBS_COLLECTION", "jobs")

    # ===== LLM API (AI scout) =====
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    AI_MODEL: str = os.getenv("AI_MODEL", "gpt-4o-mini")
    AI_TEMPERATURE: float = float(os.getenv("AI_TEMPERATURE", "0.7"))

    # ===== Admin authentication =====
    ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL", "")
    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "")
    FLASK_SECRET_KEY: str = os.getenv("FLASK_SECRET_KEY", "")

    # ===== Presentation =====
    BOARD_NAME: str = os.getenv("BOARD_NAME", "TheJobofficer")
    # {slug} is the company name lower-cased with non-alphanumerics stripped
    LOGO_URL_TEMPLATE: str = os.getenv(
        "LOGO_URL_TEMPLATE", "https://logo.clearbit.com/{slug}.com"
    )
    TELEGRAM_URL: str = os.getenv("TELEGRAM_URL", "https://t.me/your_telegram_group")
    WHATSAPP_URL: str = os.getenv(
        "WHATSAPP_URL", "https://whatsapp.com/channel/0029Vb7FYBoIXnltwyBLfo3V"
    )

    @classmethod
    def missing_settings(cls) -> List[str]:
        """Names of required settings that are empty."""
        required_settings = {
            "MONGODB_URI": cls.MONGODB_URI,
            "ADMIN_EMAIL": cls.ADMIN_EMAIL,
            "ADMIN_PASSWORD": cls.ADMIN_PASSWORD,
            "FLASK_SECRET_KEY": cls.FLASK_SECRET_KEY,
        }
        return [name for name, value in required_settings.items() if not value]

    @classmethod
    def validate(cls) -> None:
        """
        Validate that all required configuration is present.
        Raises ValueError if critical settings are missing.

        OPENAI_API_KEY is optional: without it the AI scout reports that
        AI features are disabled instead of failing at startup.
        """
        missing = cls.missing_settings()
        if missing:
            raise ValueError(
                f"Missing required configuration: {', '.join(missing)}. "
                f"Please check your .env file."
            )

        if "{slug}" not in cls.LOGO_URL_TEMPLATE:
            raise ValueError("LOGO_URL_TEMPLATE must contain a {slug} placeholder")

    @classmethod
    def ai_enabled(cls) -> bool:
        """True when an LLM credential is configured."""
        return bool(cls.OPENAI_API_KEY)

    @classmethod
    def summary(cls) -> str:
        """Return a summary of the current configuration (safe for logging)."""
        return f"""
Configuration Summary:
  MongoDB: {'✓ Configured' if cls.MONGODB_URI else '✗ Missing'} ({cls.MONGO_DB_NAME}.{cls.JOBS_COLLECTION})
  AI scout: {'✓ ' + cls.AI_MODEL if cls.ai_enabled() else '✗ Disabled (OPENAI_API_KEY missing)'}
  Admin login: {'✓ Configured' if cls.ADMIN_EMAIL and cls.ADMIN_PASSWORD else '✗ Missing'}
  Board name: {cls.BOARD_NAME}
"""
