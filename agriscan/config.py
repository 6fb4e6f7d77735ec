# ---------------- load env and defaults ----------------
import os

from dotenv import load_dotenv

load_dotenv()

GROQ_API_KEY = os.getenv("GROQ_API_KEY")
VISION_MODEL = os.getenv("GROQ_VISION_MODEL", "meta-llama/llama-4-scout-17b-16e-instruct")
MAX_TOKENS = int(os.getenv("GROQ_MAX_TOKENS", "1500"))
TEMPERATURE = float(os.getenv("GROQ_TEMPERATURE", "0.4"))

GEOLOCATION_URL = os.getenv("GEOLOCATION_URL", "https://ipinfo.io/json")
GEOLOCATION_TIMEOUT = float(os.getenv("GEOLOCATION_TIMEOUT", "8"))

STORE_PATH = os.getenv("AGRISCAN_STORE_PATH", os.path.join(".agriscan", "store.json"))
LOG_LEVEL = os.getenv("AGRISCAN_LOG_LEVEL", "INFO")

# persisted keys
AUTH_KEY = "agri_authenticated"
HISTORY_KEY = "agri_history"
