"""Centralized constants for AuthShield."""


# ===== STATE STORE NAMESPACES =====
class Namespaces:
    ATTEMPTS = "attempts"
    LOGINS = "logins"
    SESSIONS = "sessions"


# ===== BACKOFF / LOCKOUT =====
class BackoffConstants:
    DEFAULT_BASE_DELAY_MS = 1000
    DEFAULT_MAX_DELAY_MS = 300_000      # 5 minutes
    DEFAULT_MAX_ATTEMPTS = 10
    DEFAULT_RESET_AFTER_MS = 3_600_000  # 1 hour


# ===== LOGIN RISK =====
class RiskConstants:
    FAILURE_WINDOW_SECONDS = 3600
    DEFAULT_FAILURE_THRESHOLD = 3
    DEFAULT_UNUSUAL_TIME_START = 23
    DEFAULT_UNUSUAL_TIME_END = 5
    HISTORY_LIMIT = 100
    PENDING_ALERT_LIMIT = 20
    DEFAULT_HISTORY_PAGE = 20


# ===== SESSIONS =====
class SessionConstants:
    DEFAULT_MAX_CONCURRENT = 3
    DEFAULT_TIMEOUT_MINUTES = 60
    ISSUED_HANDLE_LIMIT = 50


# ===== STORAGE =====
class StorageConstants:
    LOCK_LEASE_SECONDS = 10
    LOCK_ACQUIRE_ATTEMPTS = 50
    LOCK_RETRY_DELAY_SECONDS = 0.02
    FILE_LOCK_STRIPES = 64
