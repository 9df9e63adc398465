import os
from dotenv import load_dotenv

load_dotenv()

API_KEY = os.getenv('GEMINI_API_KEY')
GEMINI_MODEL = os.getenv('GEMINI_MODEL', 'gemini-2.0-flash')
API_URL = f"https://generativelanguage.googleapis.com/v1beta/models/{GEMINI_MODEL}:generateContent?key={API_KEY}"
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379')
DATABASE_URL = os.getenv('DATABASE_URL')

# Public origin used to build candidate-facing interview links
BASE_URL = os.getenv('BASE_URL', 'http://localhost:5173').rstrip('/')

# Kill-switch for all AI generation; fallback questions are served instead
DISABLE_AI = os.getenv('DISABLE_AI', 'false').lower() == 'true'

AI_RATE_LIMIT = int(os.getenv('AI_RATE_LIMIT', '50'))  # calls per window
AI_RATE_WINDOW_SECONDS = int(os.getenv('AI_RATE_WINDOW_SECONDS', '60'))
AI_MAX_RETRIES = int(os.getenv('AI_MAX_RETRIES', '2'))
AI_BACKOFF_BASE = float(os.getenv('AI_BACKOFF_BASE', '1.0'))
AI_TIMEOUT_SECONDS = int(os.getenv('AI_TIMEOUT_SECONDS', '120'))

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
