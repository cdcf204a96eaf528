import os
from dotenv import load_dotenv
load_dotenv()
# ---- Nuts node ----
NUTS_NODE_URL = os.environ.get("NUTS_NODE_URL", "http://127.0.0.1:1323")
NUTS_NETWORK_PATH = "/internal/network/v1"
NUTS_VDR_PATH = "/internal/vdr/v1"

NUTS_REQUESTS_PER_SEC = float(os.environ.get("NUTS_REQUESTS_PER_SEC", "20"))
NUTS_TIMEOUT_SEC = int(os.environ.get("NUTS_TIMEOUT_SEC", "15"))
NUTS_MAX_RETRIES = int(os.environ.get("NUTS_MAX_RETRIES", "1"))   # 1 = single attempt

# ---- DID documents ----
DID_PREFIX = "did:"
DID_DOCUMENT_TYPE = "application/did+json"

# ---- Analysis ----
ANALYZE_MAX_WORKERS = int(os.environ.get("ANALYZE_MAX_WORKERS", "1"))
ANALYZE_TIMEOUT_SEC = float(os.environ.get("ANALYZE_TIMEOUT_SEC", "0"))   # 0 = no timeout
