# constants.py
# Centralized constants used by the alliance report. Do not change table labels without bumping schema_version.

SCHEMA_VERSION = "1.0.0"

# Table labels
OWNER_LABEL = "Owner"
AVERAGE_LABEL = "Average"

# Record source payload keys
RECORD_ITEM_KEY = "id"
RECORD_OWNER_KEY = "player"
RECORD_POWER_KEY = "power"

# HTTP defaults
DEFAULT_BASE_URL = "https://msf.pal.gg/rest/v1"
DEFAULT_SHEETS_BASE_URL = "https://sheets.googleapis.com/v4"
DEFAULT_TIMEOUT_SEC = 20
USER_AGENT = "alliance-report/1.0"
RETRY_STATUS_FORCELIST = (408, 429, 500, 502, 503, 504)

# Throttling defaults
DEFAULT_MIN_INTERVAL_SEC = 0.10  # ~600 rpm

# Output
REPORT_FORMATS = ("markdown", "json")
