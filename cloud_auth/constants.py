"""
OAuth login constants
"""

# Loopback callback server
CALLBACK_HOST = "localhost"
CALLBACK_PATH = "/"

# Authorization request
RESPONSE_TYPE = "code"
AUTHORIZE_PATH = "/login"

# Token endpoint of the identity provider
TOKEN_PATH = "/oauth2/token"
GRANT_TYPE = "authorization_code"

# Credential store keys written on every successful login
TOKEN_KEY = "token"
SESSION_KEY = "user_session"
TOKEN_PREFIX = "Token "

# What the callback handler does once the code exchange has run, whether or
# not it succeeded: redirect the browser to the post-login page and finish.
ALWAYS_REDIRECT = "always-redirect"
AFTER_EXCHANGE_POLICY = ALWAYS_REDIRECT
