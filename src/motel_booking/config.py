"""Runtime settings read from environment variables."""

import os

from pydantic import BaseModel, ConfigDict, Field


class Settings(BaseModel):
    """Engine settings.

    Every field has an environment variable of the same name in upper case,
    except ``table_prefix`` which reads DYNAMODB_TABLE_PREFIX.
    """

    model_config = ConfigDict(frozen=True)

    environment: str = Field(default="dev", description="Deployment environment")
    table_prefix: str = Field(
        default="motel-dev", description="Prefix for every DynamoDB table name"
    )
    availability_cache_ttl_seconds: float = Field(
        default=30.0, ge=0, description="Availability cache TTL, 0 disables caching"
    )
    availability_cache_max_entries: int = Field(default=512, ge=1)
    max_stay_nights: int = Field(default=90, ge=1)
    reference_retry_attempts: int = Field(default=3, ge=1)
    log_level: str = Field(default="INFO")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        environment = os.getenv("ENVIRONMENT", "dev")
        return cls(
            environment=environment,
            table_prefix=os.getenv("DYNAMODB_TABLE_PREFIX", f"motel-{environment}"),
            availability_cache_ttl_seconds=float(
                os.getenv("AVAILABILITY_CACHE_TTL_SECONDS", "30")
            ),
            availability_cache_max_entries=int(
                os.getenv("AVAILABILITY_CACHE_MAX_ENTRIES", "512")
            ),
            max_stay_nights=int(os.getenv("MAX_STAY_NIGHTS", "90")),
            reference_retry_attempts=int(os.getenv("REFERENCE_RETRY_ATTEMPTS", "3")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
