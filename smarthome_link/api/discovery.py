"""
Discovery API endpoints.

Lets a configuration UI list the plugs and bulbs on the LAN and
resolve an address to a model before a node is set up.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse

from ..discovery.discovery_service import DiscoveryService
from ..errors import SmartHomeError
from .dependencies import get_discovery_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/smarthome", tags=["Discovery"])


async def _discover(service: DiscoveryService, device_type: str) -> List[str]:
    try:
        return await service.discover_hosts(device_type)
    except Exception as e:
        logger.error(f"{device_type} discovery failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        ) from e


async def _resolve(service: DiscoveryService, ip: Optional[str]) -> PlainTextResponse:
    if not ip:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Missing device IP",
        )
    try:
        model = await service.resolve_model(ip)
    except SmartHomeError as e:
        logger.warning(f"Model lookup for {ip} failed: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=e.message,
        ) from e
    return PlainTextResponse(model)


@router.get(
    "/plugs",
    response_model=List[str],
    summary="Discover plugs",
    description="Listen for smart plugs on the LAN and return their addresses.",
)
async def discover_plugs(
    service: DiscoveryService = Depends(get_discovery_service),
) -> List[str]:
    """Discover smart plugs."""
    return await _discover(service, "plug")


@router.get(
    "/bulbs",
    response_model=List[str],
    summary="Discover bulbs",
    description="Listen for smart bulbs on the LAN and return their addresses.",
)
async def discover_bulbs(
    service: DiscoveryService = Depends(get_discovery_service),
) -> List[str]:
    """Discover smart bulbs."""
    return await _discover(service, "bulb")


@router.get(
    "/plug",
    response_class=PlainTextResponse,
    summary="Resolve plug model",
)
async def plug_model(
    ip: Optional[str] = Query(default=None, description="Device address"),
    service: DiscoveryService = Depends(get_discovery_service),
) -> PlainTextResponse:
    """Return the model identifier of the plug at ``ip``."""
    return await _resolve(service, ip)


@router.get(
    "/bulb",
    response_class=PlainTextResponse,
    summary="Resolve bulb model",
)
async def bulb_model(
    ip: Optional[str] = Query(default=None, description="Device address"),
    service: DiscoveryService = Depends(get_discovery_service),
) -> PlainTextResponse:
    """Return the model identifier of the bulb at ``ip``."""
    return await _resolve(service, ip)
