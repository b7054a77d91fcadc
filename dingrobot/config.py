"""Configuration — loads environment variables with sensible defaults.

All tunables live here. Override via .env file or environment variables.
Library callers may skip this module entirely and hand everything to
``Robot(...)`` directly; ``Robot.from_env()`` and the command-line sender
are the only readers.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env from project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

def _env(key: str, default: str = "") -> str:
    return os.getenv(key, default)

def _env_int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))

def _env_float(key: str, default: float) -> float:
    return float(os.getenv(key, str(default)))


# ═══════════════════════════════════════════════════════════════════════════
# Robot — where to send
# ═══════════════════════════════════════════════════════════════════════════
# Either a full webhook URL (token embedded in its query string) or an
# access token appended to DINGTALK_API_BASE. The webhook wins if both set.

DINGTALK_WEBHOOK = _env("DINGTALK_WEBHOOK")            # https://oapi.dingtalk.com/robot/send?access_token=xxx
DINGTALK_ACCESS_TOKEN = _env("DINGTALK_ACCESS_TOKEN")
DINGTALK_API_BASE = _env("DINGTALK_API_BASE", "https://oapi.dingtalk.com/robot/send")

# Optional "加签" secret (starts with SEC). Empty = unsigned requests.
DINGTALK_SECRET = _env("DINGTALK_SECRET")

# ═══════════════════════════════════════════════════════════════════════════
# Transport
# ═══════════════════════════════════════════════════════════════════════════

DINGTALK_TIMEOUT_SECONDS = _env_float("DINGTALK_TIMEOUT_SECONDS", 2.0)
DINGTALK_MAX_CONNECTIONS = _env_int("DINGTALK_MAX_CONNECTIONS", 100)
DINGTALK_KEEPALIVE_SECONDS = _env_float("DINGTALK_KEEPALIVE_SECONDS", 90.0)

# ═══════════════════════════════════════════════════════════════════════════
# Logging (command-line sender only, the library never configures handlers)
# ═══════════════════════════════════════════════════════════════════════════

LOG_LEVEL = _env("LOG_LEVEL", "INFO")
