"""
Environment-driven defaults for neoclient.

These values only seed ``Client.from_env`` and the keyword defaults of the
client, dispatcher and admin helpers; anything passed explicitly wins.
Unset variables fall back to an unauthenticated server at
http://localhost:7474. See .env.example for the recognised names.
"""

import os
from dotenv import load_dotenv

# Fills in variables from a .env file without overriding the real environment
load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


# ---------------------------------------------------------------------------
# Default local endpoint
# ---------------------------------------------------------------------------
DEFAULT_ALIAS: str = "default"
DEFAULT_SCHEME: str = "http"
DEFAULT_HOST: str = "localhost"
DEFAULT_PORT: int = 7474

# ---------------------------------------------------------------------------
# Neo4j REST endpoint
# ---------------------------------------------------------------------------
NEO4J_SCHEME: str = os.getenv("NEO4J_SCHEME", DEFAULT_SCHEME)
NEO4J_HOST: str = os.getenv("NEO4J_HOST", DEFAULT_HOST)
NEO4J_PORT: int = int(os.getenv("NEO4J_PORT", str(DEFAULT_PORT)))

# Leave both empty when the server runs with auth disabled
NEO4J_USER: str | None = os.getenv("NEO4J_USER") or None
NEO4J_PASSWORD: str | None = os.getenv("NEO4J_PASSWORD") or None

# Seconds before a single HTTP round trip is abandoned
NEO4J_TIMEOUT: float = float(os.getenv("NEO4J_TIMEOUT", "30"))

# ---------------------------------------------------------------------------
# Response handling
# ---------------------------------------------------------------------------
# When true, send_cypher_query() returns a decoded Result instead of raw JSON
NEO4J_AUTO_FORMAT_RESPONSE: bool = _as_bool(
    os.getenv("NEO4J_AUTO_FORMAT_RESPONSE", "false")
)

NEO4J_RESULT_DATA_CONTENTS: list[str] = [
    item.strip()
    for item in os.getenv("NEO4J_RESULT_DATA_CONTENTS", "row,graph").split(",")
    if item.strip()
]

# ---------------------------------------------------------------------------
# Admin helpers
# ---------------------------------------------------------------------------
# Nodes relabelled per statement by rename_label()
RENAME_BATCH_SIZE: int = int(os.getenv("RENAME_BATCH_SIZE", "10000"))

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"

# ---------------------------------------------------------------------------
# Package metadata
# ---------------------------------------------------------------------------
CLIENT_VERSION: str = "0.3.0"
USER_AGENT: str = f"neoclient/{CLIENT_VERSION}"
