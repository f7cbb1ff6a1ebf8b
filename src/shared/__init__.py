"""Shared models, interface and utilities for mcpeek."""

__version__ = "0.1.0"

from shared.models import (
    ToolDescriptor,
    PromptDescriptor,
    ResourceDescriptor,
    ToolCallResult,
    PromptResult,
    ResourceReadResult,
    ServerInfo,
)
from shared.capability import CapabilityClient
from shared.config import Settings, get_settings
from shared.logging import LogBuffer, get_logger, setup_logging

__all__ = [
    "ToolDescriptor",
    "PromptDescriptor",
    "ResourceDescriptor",
    "ToolCallResult",
    "PromptResult",
    "ResourceReadResult",
    "ServerInfo",
    "CapabilityClient",
    "Settings",
    "get_settings",
    "LogBuffer",
    "get_logger",
    "setup_logging",
]
