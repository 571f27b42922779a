"""
Service slot flows and registry.
"""
from .specs import (
    ServiceType,
    SlotType,
    SlotDefinition,
    FLOWS,
    available_services,
    definitions_for,
    parse_service_type,
)

__all__ = [
    "ServiceType",
    "SlotType",
    "SlotDefinition",
    "FLOWS",
    "available_services",
    "definitions_for",
    "parse_service_type",
]
