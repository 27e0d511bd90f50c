import os
from dotenv import load_dotenv

load_dotenv()

SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY", "")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")

EVENTS_TABLE = os.getenv("EVENTS_TABLE", "events")
PROFILES_TABLE = os.getenv("PROFILES_TABLE", "profiles")

FEED_DISTANCE_OPTIONS = tuple(
    float(d) for d in os.getenv("FEED_DISTANCE_OPTIONS", "0.5,1,2,5").split(",") if d.strip()
)
DEFAULT_RADIUS_MILES = float(os.getenv("DEFAULT_RADIUS_MILES", 5))
MAP_SEARCH_RADIUS_KM = float(os.getenv("MAP_SEARCH_RADIUS_KM", 10))

API_PORT = int(os.getenv("API_PORT", 8000))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
