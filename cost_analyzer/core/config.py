"""
Configuration module for loading environment variables.
Pricing, cache and usage-assumption settings are read once at import time.
"""
import os
from typing import List


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str) -> List[str]:
    raw = os.getenv(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


class Config:
    """Application configuration loaded from environment variables."""

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Pricing catalog configuration
    AWS_PRICING_REGION: str = os.getenv("AWS_PRICING_REGION", "us-east-1")
    PRICING_CONNECT_TIMEOUT_SECONDS: int = int(os.getenv("PRICING_CONNECT_TIMEOUT_SECONDS", "10"))
    PRICING_READ_TIMEOUT_SECONDS: int = int(os.getenv("PRICING_READ_TIMEOUT_SECONDS", "10"))

    # Resolution policy
    PRICING_MAX_ATTEMPTS: int = int(os.getenv("PRICING_MAX_ATTEMPTS", "3"))
    PRICING_BACKOFF_BASE_SECONDS: float = float(os.getenv("PRICING_BACKOFF_BASE_SECONDS", "1.0"))

    # Persistent price cache
    PRICING_PERSISTENT_CACHE_ENABLED: bool = _env_bool("PRICING_PERSISTENT_CACHE_ENABLED", "true")
    PRICING_CACHE_DIR: str = os.getenv("PRICING_CACHE_DIR", ".template-cost-cache")
    PRICING_CACHE_DURATION_HOURS: float = float(os.getenv("PRICING_CACHE_DURATION_HOURS", "24"))

    # Circuit breaker around the catalog
    CIRCUIT_FAILURE_THRESHOLD: int = int(os.getenv("CIRCUIT_FAILURE_THRESHOLD", "5"))
    CIRCUIT_OPEN_SECONDS: int = int(os.getenv("CIRCUIT_OPEN_SECONDS", "60"))

    # Resource types priced at zero on purpose
    EXCLUDED_RESOURCE_TYPES: List[str] = _env_list("EXCLUDED_RESOURCE_TYPES")

    # Usage assumptions
    HOURS_PER_MONTH: int = 730  # Standard assumption: 24/7 operation
    S3_STORAGE_GB: int = int(os.getenv("S3_STORAGE_GB", "100"))
    LAMBDA_INVOCATIONS_PER_MONTH: int = int(os.getenv("LAMBDA_INVOCATIONS_PER_MONTH", "1000000"))
    LAMBDA_AVERAGE_DURATION_MS: int = int(os.getenv("LAMBDA_AVERAGE_DURATION_MS", "1000"))
    DYNAMODB_READ_REQUESTS_PER_MONTH: int = int(os.getenv("DYNAMODB_READ_REQUESTS_PER_MONTH", "10000000"))
    DYNAMODB_WRITE_REQUESTS_PER_MONTH: int = int(os.getenv("DYNAMODB_WRITE_REQUESTS_PER_MONTH", "1000000"))
    NAT_GATEWAY_DATA_PROCESSED_GB: int = int(os.getenv("NAT_GATEWAY_DATA_PROCESSED_GB", "100"))

    @classmethod
    def validate(cls) -> None:
        """
        Validates that configuration values are usable.

        Raises:
            ValueError: If any configuration value is missing or out of range.
        """
        if not cls.AWS_PRICING_REGION:
            raise ValueError("AWS_PRICING_REGION is required")
        if cls.PRICING_MAX_ATTEMPTS < 1:
            raise ValueError(
                f"PRICING_MAX_ATTEMPTS must be at least 1 (got: {cls.PRICING_MAX_ATTEMPTS})"
            )
        if cls.PRICING_BACKOFF_BASE_SECONDS < 0:
            raise ValueError("PRICING_BACKOFF_BASE_SECONDS must not be negative")
        if cls.PRICING_CACHE_DURATION_HOURS <= 0:
            raise ValueError(
                f"PRICING_CACHE_DURATION_HOURS must be positive (got: {cls.PRICING_CACHE_DURATION_HOURS})"
            )
        if cls.PRICING_PERSISTENT_CACHE_ENABLED and not cls.PRICING_CACHE_DIR:
            raise ValueError("PRICING_CACHE_DIR is required when the persistent cache is enabled")


config = Config()
