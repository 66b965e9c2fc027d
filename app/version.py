API_VERSION = "v1"
API_PREFIX = f"/api/{API_VERSION}"
APP_VERSION = "0.1.0"
