"""Configuration models passed explicitly to the engine's collaborators."""

from collections.abc import Mapping

from pydantic import BaseModel, Field, SecretStr


class ClientConfig(BaseModel):
    """Configuration for the HTTP client used to reach the API under test."""

    base_url: str
    token: SecretStr | None = None
    api_key: SecretStr | None = None
    headers: Mapping[str, str] = Field(default_factory=dict)
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")


class RetryPolicy(BaseModel):
    """Bounded retry applied to unsuccessful strategy executions."""

    max_retries: int = Field(default=2, ge=0)
    delay: float = Field(default=0.0, ge=0, description="Seconds between attempts")
