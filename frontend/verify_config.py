#!/usr/bin/env python3
"""
Configuration verification script for frontend deployment.

Checks that all required environment variables are set correctly and that
the job store is reachable. Run this before deploying or after
configuration changes.
"""

import os
import sys

from jobboard.common.config import Config
from jobboard.common.repositories import get_job_repository

# Critical variables
CRITICAL_VARS = {
    "MONGODB_URI": "MongoDB connection string (job store)",
    "FLASK_SECRET_KEY": "Flask session encryption key",
    "ADMIN_EMAIL": "Admin login email",
    "ADMIN_PASSWORD": "Admin login password",
}

# Optional but recommended variables
OPTIONAL_VARS = {
    "OPENAI_API_KEY": "AI scout and description generator (disabled when unset)",
    "AI_MODEL": f"Chat model (default: {Config.AI_MODEL})",
    "BOARD_NAME": f"Board name (default: {Config.BOARD_NAME})",
    "LOGO_URL_TEMPLATE": "Company logo URL template with {slug}",
    "TELEGRAM_URL": "Telegram channel link",
    "WHATSAPP_URL": "WhatsApp channel link",
    "FLASK_PORT": "Flask server port (default: 5000)",
}


def mask(var_name: str, value: str) -> str:
    """Hide secrets and credentials embedded in connection strings."""
    if "SECRET" in var_name or "PASSWORD" in var_name or "KEY" in var_name:
        return value[:8] + "..." if len(value) > 8 else "***"
    if var_name == "MONGODB_URI":
        # Show host but mask credentials
        return value.split("@")[1] if "@" in value else value[:20] + "..."
    return value


def check_required_env_vars() -> bool:
    """Verify all required environment variables are set."""
    errors = []
    warnings = []

    print("=" * 70)
    print("Frontend Configuration Verification")
    print("=" * 70)
    print()

    print("Critical Environment Variables:")
    print("-" * 70)
    for var_name, description in CRITICAL_VARS.items():
        value = os.getenv(var_name)
        if not value:
            errors.append(f"❌ {var_name}: NOT SET")
            print(f"❌ {var_name:<25} NOT SET")
            print(f"   → {description}")
        else:
            print(f"✅ {var_name:<25} {mask(var_name, value)}")

    print()
    print("Optional Environment Variables:")
    print("-" * 70)
    for var_name, description in OPTIONAL_VARS.items():
        value = os.getenv(var_name)
        if not value:
            warnings.append(f"⚠️  {var_name}: Using default")
            print(f"⚠️  {var_name:<25} Using default")
            print(f"   → {description}")
        else:
            print(f"✅ {var_name:<25} {mask(var_name, value)}")

    if "{slug}" not in Config.LOGO_URL_TEMPLATE:
        errors.append("❌ LOGO_URL_TEMPLATE: missing {slug} placeholder")

    print()
    print("=" * 70)
    print()
    print("Job Store Connectivity Test:")
    print("-" * 70)

    if Config.MONGODB_URI:
        try:
            get_job_repository().ping()
            print(f"✅ MongoDB is reachable ({Config.MONGO_DB_NAME}.{Config.JOBS_COLLECTION})")
        except Exception as e:
            errors.append(f"❌ MongoDB ping failed: {e}")
            print(f"❌ MongoDB ping failed: {e}")
    else:
        print("⚠️  MONGODB_URI not set - skipping connectivity test")

    print()
    print("=" * 70)
    print()
    print("Summary:")
    print("-" * 70)

    if errors:
        print(f"❌ {len(errors)} critical error(s) found:")
        for error in errors:
            print(f"   {error}")
        print()
        print("RECOMMENDATION: Fix all critical errors before deploying to production")
        return False

    if warnings:
        print(f"⚠️  {len(warnings)} warning(s) found:")
        for warning in warnings:
            print(f"   {warning}")
        print()
        print("RECOMMENDATION: Review warnings and configure optional settings")
    else:
        print("✅ All configuration checks passed!")
        print()
        print("READY FOR DEPLOYMENT")

    print("=" * 70)
    return True


if __name__ == "__main__":
    success = check_required_env_vars()
    sys.exit(0 if success else 1)
