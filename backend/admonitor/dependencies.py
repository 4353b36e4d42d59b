"""
Shared FastAPI dependencies: the process-wide ad platform client, the
credential store, and the services built on top of them.
"""

import logging
from functools import lru_cache

from fastapi import Depends, HTTPException

from admonitor.ad_platform import AdPlatformClient, create_platform_client
from admonitor.config import ConfigurationError, get_settings
from admonitor.services.auth_service import CredentialStore, StaticCredentialStore
from admonitor.services.control_service import ControlService
from admonitor.services.sync_service import SyncService

logger = logging.getLogger(__name__)


@lru_cache
def build_platform_client() -> AdPlatformClient:
    return create_platform_client(get_settings())


def get_platform_client() -> AdPlatformClient:
    """
    Client selected once from APP_MODE. Missing live credentials only fail
    the requests that need the platform.
    """
    try:
        return build_platform_client()
    except ConfigurationError as e:
        logger.error(f"Ad platform unavailable: {e}")
        raise HTTPException(status_code=500, detail=f"Server misconfiguration: {e}")


@lru_cache
def get_credential_store() -> CredentialStore:
    return StaticCredentialStore.from_settings(get_settings())


def get_sync_service(client: AdPlatformClient = Depends(get_platform_client)) -> SyncService:
    return SyncService(client, get_settings())


def get_control_service(client: AdPlatformClient = Depends(get_platform_client)) -> ControlService:
    return ControlService(client)
