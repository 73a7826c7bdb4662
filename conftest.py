"""Repository-level pytest setup.

Pins environment defaults before ``src.config`` is first imported so the
app never reaches for a real database or Kafka broker under test.
"""

import os

os.environ.setdefault("DATABASE_ENABLED", "false")
os.environ.setdefault("KAFKA_ENABLED", "false")
os.environ.setdefault("VERIFIER_IDS", "verifier-a,verifier-b")
os.environ.setdefault("ADMIN_IDS", "admin-1")
os.environ.setdefault("JSON_LOGS", "false")
