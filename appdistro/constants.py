"""
appdistro Constants

Centralized constants for magic values, defaults, and configuration.
"""

# Config Files
CONFIG_FILENAME = "appdistro.yml"
DOTENV_FILENAME = ".env"
STATE_DIR = ".appdistro"
LOGS_DIR = "logs"

# Supported Platforms
PLATFORM_ANDROID = "android"
PLATFORM_IOS = "ios"

ARTIFACT_SUFFIXES = {
    PLATFORM_ANDROID: [".apk", ".aab"],
    PLATFORM_IOS: [".ipa"],
}

# App ID format: 1:<project_number>:<platform>:<hex>
APP_ID_PATTERN = r"^\d+:(\d+):(android|ios|web):[0-9a-f]+$"

TESTER_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# Upload Backends
BACKEND_CLI = "cli"
BACKEND_API = "api"
BACKENDS = [BACKEND_CLI, BACKEND_API]

# CLI Backend Defaults
DEFAULT_DISTRIBUTE_COMMAND = "firebase appdistribution:distribute"
DEFAULT_UPLOAD_TIMEOUT = 600
FIREBASE_DEBUG_LOG = "firebase-debug.log"

# REST Backend Configuration
API_BASE_URL = "https://firebaseappdistribution.googleapis.com"
UPLOAD_BASE_URL = "https://firebaseappdistribution.googleapis.com/upload"
API_SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]
API_REQUEST_TIMEOUT = 30
POLL_INTERVAL = 5
POLL_MAX_ATTEMPTS = 60

# Environment Variables (CI secrets)
ENV_SERVICE_ACCOUNT = "FIREBASE_SERVICE_ACCOUNT"
ENV_GOOGLE_CREDENTIALS = "GOOGLE_APPLICATION_CREDENTIALS"
ENV_ANDROID_APP_ID = "FIREBASE_ANDROID_APP_ID"
ENV_IOS_APP_ID = "FIREBASE_IOS_APP_ID"
ENV_GROUPS = "FIREBASE_GROUPS"
ENV_RELEASE_NOTES = "FIREBASE_RELEASE_NOTES"

APP_ID_ENV_VARS = {
    PLATFORM_ANDROID: ENV_ANDROID_APP_ID,
    PLATFORM_IOS: ENV_IOS_APP_ID,
}

# Log Configuration
LOG_DATE_FORMAT = "%Y-%m-%d"
LOG_TIME_FORMAT = "%H-%M-%S"

# Tool Names (for doctor check)
REQUIRED_TOOLS = [
    "git",
    "gh",
]

# Sensitive Keywords (for secret masking)
SENSITIVE_KEYWORDS = [
    "PASSWORD",
    "TOKEN",
    "SECRET",
    "KEY",
    "SERVICE_ACCOUNT",
]

# File Permissions
SECRET_FILE_PERMISSIONS = 0o600

# Files that must never be committed
GITIGNORE_ENTRIES = [
    ".env",
    ".appdistro/",
    "service-account*.json",
    FIREBASE_DEBUG_LOG,
]

# GitHub secret sync timeout (seconds)
GH_COMMAND_TIMEOUT = 30
