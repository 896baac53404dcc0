from pathlib import Path
from config.loader import get_config_loader

# Get the config loader instance
config = get_config_loader()

# Logging
LOG_LEVEL = config.get("CLOUD_LOG_LEVEL", "warning")
DEBUG_LOG_FILE = config.get("CLOUD_DEBUG_LOG_FILE", "cloud_cli_debug.log")

# Platform API
API_URL = config.get("CLOUD_API_URL", "https://cloud.saleor.io/platform/api")
VERIFY_URL = config.get("CLOUD_VERIFY_URL", "https://id.saleor.live/verify")
# Deployment environment passed to the verification endpoint at login
ENVIRONMENT = config.get("CLOUD_ENVIRONMENT", "production")

# Timeout for every outbound HTTP call (seconds)
REQUEST_TIMEOUT = config.get("CLOUD_REQUEST_TIMEOUT", 30.0)

# OAuth identity provider
# The redirect URI registered for the client is http://localhost:<CALLBACK_PORT>/
CALLBACK_PORT = config.get("CLOUD_CALLBACK_PORT", 5375)
OAUTH_DOMAIN = config.get("CLOUD_OAUTH_DOMAIN", "auth.saleor.io")
OAUTH_CLIENT_ID = config.get("CLOUD_OAUTH_CLIENT_ID", "")
OAUTH_SCOPES = config.get_list("CLOUD_OAUTH_SCOPES", "openid email profile")
OAUTH_IDENTITY_PROVIDER = config.get("CLOUD_OAUTH_IDENTITY_PROVIDER", "COGNITO")
# Where the browser lands after the loopback callback has been handled
OAUTH_REDIRECT_SIGN_IN = config.get("CLOUD_OAUTH_REDIRECT_SIGN_IN", "https://cloud.saleor.io/")

# Long-running task polling
TASK_POLL_INTERVAL = config.get("CLOUD_TASK_POLL_INTERVAL", 10.0)

# Credential storage
CREDENTIALS_FILE = config.get("CLOUD_CREDENTIALS_FILE", str(Path.home() / ".cloud-cli" / "credentials.json"))
