"""Test environment: set before app.core.config is imported (settings are read once, at import)."""

import os

os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["PASSWORD_MIN_LENGTH"] = "3"
os.environ["SEED_ON_STARTUP"] = "false"
os.environ["SEED_DEFAULT_USERS"] = "false"
os.environ["MAIL_ENABLED"] = "false"
