"""Application settings using pydantic-settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = False

    # Analyzer selection
    generator: str = Field(
        default="OPAL",
        description="Call graph generator backing the producer: 'OPAL' or 'WALA'",
    )
    forge: str = Field(
        default="mvn",
        description="Forge recorded on produced call graphs",
    )

    # Topics
    consume_topic: str = Field(
        default="maven.packages",
        description="Topic carrying Maven coordinate records",
    )
    produce_topic: str | None = Field(
        default=None,
        description="Topic for encoded call graphs (default: '<generator>_callgraphs')",
    )

    # Artifact lookup
    local_repository: str = Field(
        default="~/.m2/repository",
        description="Root of the local Maven repository holding resolved artifacts",
    )

    # External engines
    opal_command: str = Field(
        default="opal-callgraph --input {artifact} --output {output}",
        description="Command template running the OPAL engine",
    )
    wala_command: str = Field(
        default="wala-callgraph --input {artifact} --output {output}",
        description="Command template running the WALA engine",
    )
    engine_timeout_seconds: int = Field(
        default=1800,
        description="Timeout for one engine run (seconds)",
    )

    # Output
    canonicalize_internal_calls: bool = Field(
        default=True,
        description="Sort internal calls canonically before publishing",
    )

    # OpenTelemetry
    otel_enabled: bool = Field(
        default=False,
        description="Enable OpenTelemetry traces and metrics",
    )
    otel_service_name: str = Field(
        default="callgraph",
        description="Service name reported to the collector",
    )
    otel_exporter_otlp_endpoint: str = Field(
        default="http://localhost:4317",
        description="OTLP gRPC endpoint",
    )
    otel_traces_sampler: str = Field(
        default="parentbased_traceidratio",
        description="Sampler: always_on, always_off, traceidratio, parentbased_traceidratio",
    )
    otel_traces_sampler_arg: float = Field(
        default=1.0,
        description="Sampling ratio for ratio-based samplers",
    )


# Singleton instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
