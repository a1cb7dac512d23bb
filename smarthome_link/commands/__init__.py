"""
Command module.

Routes inbound control payloads to the device or the subscription filter.
"""
from .router import CommandRouter, parse_power

__all__ = [
    "CommandRouter",
    "parse_power",
]
