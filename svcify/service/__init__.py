"""Service management for svcify."""

from .base import ServiceInfo, ServiceStatus, get_service_manager

__all__ = ["ServiceInfo", "ServiceStatus", "get_service_manager"]
