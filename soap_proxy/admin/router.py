"""Admin router for inspecting and replacing the running proxy configuration."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import ValidationError

from soap_proxy.config.proxy_config import ProxyConfig, ProxyConfigUpdate
from soap_proxy.core.dependencies import get_dependencies
from soap_proxy.core.dependency_container import DependencyContainer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/_proxy", tags=["admin"])


@router.get("/config", response_model=ProxyConfig)
async def get_config(dependencies: DependencyContainer = Depends(get_dependencies)) -> ProxyConfig:
    """Return the configuration snapshot new requests currently use."""
    return dependencies.config_store.get()


@router.patch("/config", response_model=ProxyConfig)
async def update_config(
    update: ProxyConfigUpdate,
    dependencies: DependencyContainer = Depends(get_dependencies),
) -> ProxyConfig:
    """Publish a new configuration snapshot with the given fields changed.

    Requests already in flight keep the snapshot they started with.
    """
    try:
        return dependencies.config_store.update(update)
    except ValidationError as e:
        logger.warning(f"Rejected proxy configuration update: {e}")
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.errors())
