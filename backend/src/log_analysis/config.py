import os

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

SENTRY_DSN = os.environ.get("SENTRY_DSN")
SENTRY_TRACES_SAMPLE_RATE = float(os.environ.get("SENTRY_TRACES_SAMPLE_RATE", "0.05"))
SENTRY_ENABLED = SENTRY_DSN is not None
RUNNING_IN_LAMBDA = os.environ.get("AWS_EXECUTION_ENV") is not None

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get(
        "CORS_ORIGINS",
        "http://localhost:5173,https://www.warcraftlogs.com",
    ).split(",")
    if origin.strip()
]

SAVE_COMBAT_LOGS = os.environ.get("SAVE_COMBAT_LOGS", "").lower() in ("1", "true", "yes")
SAVED_LOGS_DIR = os.environ.get("SAVED_LOGS_DIR", "saved_logs")
