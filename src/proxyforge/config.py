"""Settings for proxy synthesis.

Environment Variable Format:
    PROXYFORGE_<KEY>=<VALUE>

Examples:
    PROXYFORGE_LOG_LEVEL=DEBUG
    PROXYFORGE_LOG_FORMAT=json
    PROXYFORGE_DYNAMIC_MODULE=myapp.proxies
"""

from typing import Any
from typing import Literal

from pydantic import Field
from pydantic import ValidationError
from pydantic import field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict

from proxyforge.errors import ProxyConfigurationError

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class ProxyForgeSettings(BaseSettings):
    """Settings consumed by repositories and the synthesizers."""

    model_config = SettingsConfigDict(env_prefix="PROXYFORGE_", frozen=True, extra="forbid")

    log_level: LogLevel = Field(
        default="WARNING",
        description="Level used by configure_logging.",
    )
    log_format: Literal["json", "console"] = "console"
    dynamic_module: str = Field(
        default="proxyforge.dynamic",
        description="Value of __module__ on every manufactured class.",
    )
    proxy_type_prefix: str = Field(default="Proxy", min_length=1)
    record_type_prefix: str = Field(default="CallRecord", min_length=1)

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("proxy_type_prefix", "record_type_prefix")
    @classmethod
    def validate_identifier(cls, v: str) -> str:
        if not v.isidentifier():
            raise ValueError(f"Type name prefix must be a Python identifier: {v!r}")
        return v


def load_settings(**overrides: Any) -> ProxyForgeSettings:
    """Load settings from the environment, applying keyword overrides.

    :param overrides: Field values taking precedence over the environment.
    :returns: Validated settings.
    :raises ProxyConfigurationError: If a value fails validation.
    """
    try:
        return ProxyForgeSettings(**overrides)
    except ValidationError as e:
        raise ProxyConfigurationError(f"Invalid proxyforge settings: {e}") from e
