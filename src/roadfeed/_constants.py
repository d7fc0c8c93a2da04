"""Internal constants shared across the library."""

USER_AGENT = "roadfeed/1.0 (+https://github.com/roadfeed)"
ACCEPT_JSON = "application/json, text/javascript, */*; q=0.1"

PBS_BASE_URL = "https://rtr.pbs.gov.tw/pbsmgt"
TDX_BASE_URL = "https://tdx.transportdata.tw/api/basic"
TDX_TOKEN_URL = "https://tdx.transportdata.tw/auth/realms/TDXConnect/protocol/openid-connect/token"

#: Default event time-to-live in seconds (2 hours).
DEFAULT_TTL_SECONDS: float = 2 * 3600
#: Default cap on simultaneously in-flight fetches.
DEFAULT_CONCURRENCY = 6
DEFAULT_REQUEST_TIMEOUT: float = 15.0
DEFAULT_EVENTS_PATH = "/events"
#: Provider timestamps without an offset are Taiwan local time.
DEFAULT_SOURCE_UTC_OFFSET_HOURS: float = 8.0

#: Generic title used when a record carries no title-like field.
FALLBACK_TITLE = "路況事件"

#: Refresh the TDX bearer token this many seconds before it expires.
TOKEN_EXPIRY_MARGIN_SECONDS: float = 60.0

SOURCE_NAMES: frozenset[str] = frozenset({"pbs", "tdx_news", "tdx_event"})
DEFAULT_SOURCES: tuple[str, ...] = ("pbs", "tdx_news")
