from __future__ import annotations

import os
from zoneinfo import ZoneInfo

# ----------------------------------------------------------------------
# Firestore
# ----------------------------------------------------------------------
FIRESTORE_PROJECT = os.getenv("FIRESTORE_PROJECT", "sikkim-lottery-e2faa")
FIRESTORE_BASE_URL = os.getenv(
    "FIRESTORE_BASE_URL",
    f"https://firestore.googleapis.com/v1/projects/{FIRESTORE_PROJECT}/databases/(default)/documents",
).rstrip("/")

# ----------------------------------------------------------------------
# HTTP / tempo
# ----------------------------------------------------------------------
HTTP_TIMEOUT = int(os.getenv("HTTP_TIMEOUT", "12"))
CHART_TZ = ZoneInfo(os.getenv("CHART_TZ", "Asia/Kolkata"))

# ----------------------------------------------------------------------
# Sessões em memória
# ----------------------------------------------------------------------
SESSION_TTL_SEC = int(os.getenv("SESSION_TTL_SEC", "3600"))
