import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv()

ROOT_DIR = Path(__file__).resolve().parents[1]

DB_PATH = Path(os.getenv("PAGECRAFT_DB_PATH", str(ROOT_DIR / "pagecraft.db")))
SESSION_SECRET = os.getenv("PAGECRAFT_SESSION_SECRET", "pagecraft-session")
LOG_LEVEL = os.getenv("PAGECRAFT_LOG_LEVEL", "INFO").upper()

MODEL_PROVIDER = os.getenv("PAGECRAFT_MODEL_PROVIDER", "anthropic").lower()

ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "")
ANTHROPIC_BASE_URL = os.getenv("ANTHROPIC_BASE_URL", "https://api.anthropic.com")
ANTHROPIC_MODEL = os.getenv("ANTHROPIC_MODEL", "claude-3-5-sonnet-20241022")
ANTHROPIC_VERSION = "2023-06-01"

OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "glm-4.6:cloud")

MAX_TOKENS = int(os.getenv("PAGECRAFT_MAX_TOKENS", "4000"))
TEMPERATURE = float(os.getenv("PAGECRAFT_TEMPERATURE", "0.7"))
REQUEST_TIMEOUT = float(os.getenv("PAGECRAFT_REQUEST_TIMEOUT", "120"))

# No allow-same-origin: generated code must not reach the host page.
SANDBOX_PERMISSIONS = "allow-scripts allow-forms"
