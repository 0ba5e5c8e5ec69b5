"""Admin endpoints for import runs and maintenance.

These endpoints are intended for operators and manual testing.
In production, put them behind authentication (API key or admin token).
"""

import logging
from typing import Literal
from uuid import uuid4

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from catalog_sync.schemas import JobReportOut, MappingCacheStats
from catalog_sync.services.job_reports import JobReportService
from catalog_sync.services.mapping_cache import MappingCacheService
from catalog_sync.services.orchestrator import ImportOptions, build_client, build_store, run_import
from catalog_sync.services.webservice_client import WebserviceError
from catalog_sync.settings import get_settings
from catalog_sync.stores.redis import (
    IMPORT_LOCK,
    PREFIX_CONNECTION_TEST,
    TTL_CONNECTION_TEST,
    acquire_lock,
    cache_get_json,
    cache_set_json,
    lock_owner,
    release_lock,
)

router = APIRouter()
logger = logging.getLogger("uvicorn.error")


class ImportRequest(BaseModel):
    """Request body for the import endpoint."""

    devices: bool = False
    mapping: bool = False
    product_device_links: bool = False
    product_information: bool = False


class ImportResponse(BaseModel):
    success: bool
    counters: dict


@router.post("/import", response_model=ImportResponse)
async def trigger_import(request: ImportRequest) -> ImportResponse:
    """Run an import synchronously.

    Returns 409 while another import holds the lock.
    """
    options = ImportOptions(
        devices=request.devices,
        mapping=request.mapping,
        product_device_links=request.product_device_links,
        product_information=request.product_information,
        command_line=f"POST /v1/admin/import {request.model_dump_json()}",
    )
    if not options.any_selected:
        raise HTTPException(
            status_code=400,
            detail="Select at least one of devices, mapping, product_device_links, product_information",
        )

    settings = get_settings()
    owner = f"api:{uuid4().hex}"
    if not await acquire_lock(IMPORT_LOCK, settings.import_lock_ttl, owner=owner):
        holder = await lock_owner(IMPORT_LOCK)
        raise HTTPException(status_code=409, detail=f"Import already running (lock held by {holder})")

    client = build_client(settings)
    try:
        report = await run_import(options, build_store(), client, settings)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Import failed: {str(e)}")
    finally:
        await client.close()
        await release_lock(IMPORT_LOCK, owner)

    return ImportResponse(success=True, counters=report.as_dict())


@router.get("/reports", response_model=list[JobReportOut])
async def list_reports(limit: int = Query(default=20, ge=1, le=200)) -> list[JobReportOut]:
    """Latest import run reports, newest first."""
    rows = await JobReportService(build_store()).latest(limit)
    return [JobReportOut(**row) for row in rows]


@router.get("/mapping-cache/stats", response_model=MappingCacheStats)
async def mapping_cache_stats() -> MappingCacheStats:
    stats = await MappingCacheService(build_store()).stats()
    return MappingCacheStats(**stats)


@router.delete("/mapping-cache")
async def purge_mapping_cache(
    mapping_type: Literal["EAN", "OEM", "PCD"] | None = Query(default=None),
) -> dict:
    """Purge the mapping cache (all types, or one)."""
    deleted = await MappingCacheService(build_store()).purge(mapping_type)
    return {"deleted": deleted, "mapping_type": mapping_type}


@router.get("/webservice/connection")
async def test_webservice_connection(refresh: bool = False) -> dict:
    """Connection test against /user/user_info (cached for 5 minutes)."""
    settings = get_settings()
    cache_key = f"{PREFIX_CONNECTION_TEST}{settings.api_uid}"
    if not refresh:
        cached = await cache_get_json(cache_key)
        if cached is not None:
            return {"ok": True, "cached": True, "user_info": cached}

    client = build_client(settings)
    try:
        user_info = await client.get_user_info()
    except WebserviceError as e:
        logger.warning(f"Webservice connection test failed: {e}")
        return {"ok": False, "cached": False, "error": str(e)}
    finally:
        await client.close()

    await cache_set_json(cache_key, user_info, TTL_CONNECTION_TEST)
    return {"ok": True, "cached": False, "user_info": user_info}
