"""
Shared test setup.

Environment is set before any gatekeeper import: the settings object and the
module-level engine are built at import time, so tests must never point at a
real PostgreSQL server or pay for production argon2 costs.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_ENV"] = "dev"
os.environ["JWT_SECRET"] = "test-secret-key-for-gatekeeper-tests-0123456789"
os.environ["ARGON2_MEMORY_COST"] = "64"
os.environ["ARGON2_PARALLELISM"] = "1"
os.environ["LOG_LEVEL"] = "WARNING"
