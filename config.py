"""
Central configuration — reads from .env file.

The analysis endpoint is read here once and handed to AnalysisClient at
construction; nothing in the workflow core looks it up on its own.
SHARE_* are read by channels.py on every share, so changing them on this
module takes effect on the next tap.
"""
import os
from dotenv import load_dotenv

load_dotenv()

# ── Telegram ──────────────────────────────────────────────────────────────────
# Required to run the bot (main.py refuses to start without it)
TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "")

# ── Analysis service ──────────────────────────────────────────────────────────
# Base URL of the image-analysis service, e.g. https://ocr.example.com
# The bot POSTs to {ANALYSIS_API_URL}/api/analyze-simple
ANALYSIS_API_URL: str = os.getenv("ANALYSIS_API_URL", "http://localhost:8000")

# ── Sharing ───────────────────────────────────────────────────────────────────
# Presentation-only: the workflow core reads nothing here but ANALYSIS_API_URL.
# SHARE_ENABLED=false   → no share channel; 分享 falls back to copy + notice
# SHARE_CHAT_ID         → chat (e.g. a team group) that receives shared orders.
#                         Blank = send the forwardable card back to the user.
SHARE_ENABLED: bool        = os.getenv("SHARE_ENABLED", "true").lower() == "true"
SHARE_CHAT_ID: int | None  = (
    int(os.environ["SHARE_CHAT_ID"])
    if os.getenv("SHARE_CHAT_ID", "").strip().lstrip("-").isdigit()
    else None
)

# ── Runtime ───────────────────────────────────────────────────────────────────
# Log file (bot.log) is written here
DATA_DIR: str = os.getenv("DATA_DIR", "data")
