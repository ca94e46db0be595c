# venuefeed/config.py
from dotenv import load_dotenv
import os

load_dotenv()


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# API Keys
FOURSQUARE_API_KEY = os.getenv("FOURSQUARE_API_KEY")
GEOAPIFY_API_KEY = os.getenv("GEOAPIFY_API_KEY")
EVENTBRITE_PRIVATE_TOKEN = os.getenv("EVENTBRITE_PRIVATE_TOKEN")
TICKETMASTER_API_KEY = os.getenv("TICKETMASTER_API_KEY")

# Pool parameters
POOL_TARGET_SIZE = int(os.getenv("POOL_TARGET_SIZE", "150"))
POOL_TTL_SECONDS = int(os.getenv("POOL_TTL_SECONDS", str(30 * 60)))
EXHAUSTION_RATIO = float(os.getenv("EXHAUSTION_RATIO", "0.5"))
DEFAULT_BATCH_SIZE = int(os.getenv("DEFAULT_BATCH_SIZE", "20"))
POOL_MAX_ENTRIES = int(os.getenv("POOL_MAX_ENTRIES", "500"))
POOL_IDLE_EVICT_TTLS = int(os.getenv("POOL_IDLE_EVICT_TTLS", "4"))
POOL_SINGLE_FLIGHT = _flag("POOL_SINGLE_FLIGHT", "true")

# Aggregation
CATEGORY_PRIORITY = [
    c.strip() for c in os.getenv("CATEGORY_PRIORITY", "restaurant,activity,event").split(",") if c.strip()
]
PRIMARY_SOURCE_SHARE = 0.7
FUZZY_DEDUP_THRESHOLD = int(os.getenv("FUZZY_DEDUP_THRESHOLD", "0"))
FALLBACK_NEAR_EMPTY_RATIO = float(os.getenv("FALLBACK_NEAR_EMPTY_RATIO", "0.3"))

# Runtime parameters
RATE_LIMIT_MAX_CALLS = int(os.getenv("RATE_LIMIT_MAX_CALLS", "150"))
RATE_LIMIT_PERIOD_SECONDS = float(os.getenv("RATE_LIMIT_PERIOD_SECONDS", "60"))
RATE_LIMIT_MAX_CLIENTS = int(os.getenv("RATE_LIMIT_MAX_CLIENTS", "10000"))
CONCURRENCY = 100
HTTP_TIMEOUT_SECONDS = 30
MOCK_PROVIDERS = _flag("MOCK_PROVIDERS")
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# URLs
FOURSQUARE_SEARCH_URL = "https://api.foursquare.com/v3/places/search"
GEOAPIFY_GEOCODE_URL = "https://api.geoapify.com/v1/geocode/search"
GEOAPIFY_PLACES_URL = "https://api.geoapify.com/v2/places"
EVENTBRITE_SEARCH_URL = "https://www.eventbriteapi.com/v3/events/search/"
TICKETMASTER_EVENTS_URL = "https://app.ticketmaster.com/discovery/v2/events.json"

# File names
OUTPUT_CSV = "venue_feed.csv"
