"""Configuration models for the Study Buddy proxy.

This module defines Pydantic models for validating and managing
configuration settings for the gateway proxy.
"""

import os
from typing import List, Optional

from pydantic import BaseModel, Field


class GatewayConfig(BaseModel):
    """Upstream LLM gateway settings."""

    url: str = Field(
        default="https://ai.gateway.lovable.dev/v1/chat/completions",
        description="OpenAI-compatible chat completions URL"
    )
    model: str = Field(
        default="google/gemini-3-flash-preview",
        description="Model name sent to the gateway"
    )
    api_key_env: str = Field(
        default="GATEWAY_API_KEY",
        description="Environment variable holding the gateway bearer token"
    )
    request_timeout: float = Field(
        default=300.0,
        gt=0,
        description="Upper bound on one upstream request, in seconds"
    )

    def api_key(self) -> Optional[str]:
        return os.environ.get(self.api_key_env) or None


class GenerationDefaults(BaseModel):
    """Sampling settings applied to every request."""

    temperature: float = Field(
        default=0.8,
        ge=0.0,
        le=2.0,
        description="Sampling temperature"
    )
    top_p: float = Field(
        default=0.95,
        ge=0.0,
        le=1.0,
        description="Top-p sampling parameter"
    )
    context_limit: int = Field(
        default=1500,
        gt=0,
        description="Characters of background context kept in the system prompt"
    )


class ServerConfig(BaseModel):
    """Configuration for the server settings."""

    host: str = Field(
        default="0.0.0.0",
        description="Server host address"
    )
    port: int = Field(
        default=8787,
        ge=1,
        le=65535,
        description="Server port number"
    )
    endpoint: str = Field(
        default="/v1/assistant",
        description="Path of the chat endpoint"
    )
    study_endpoint: str = Field(
        default="/v1/study",
        description="Path of the study materials endpoint"
    )
    schedule_endpoint: str = Field(
        default="/v1/schedule",
        description="Path of the weekly schedule endpoint"
    )
    client_api_keys: List[str] = Field(
        default_factory=list,
        description="Accepted client bearer tokens (empty: no client auth)"
    )


class ProxyConfig(BaseModel):
    """Complete configuration for the proxy."""

    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    generation: GenerationDefaults = Field(default_factory=GenerationDefaults)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'ProxyConfig':
        """Load configuration from YAML file."""
        from .utils import load_proxy_config_from_yaml
        return load_proxy_config_from_yaml(yaml_path)
