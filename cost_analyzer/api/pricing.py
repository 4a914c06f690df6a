"""
API routes for cost deltas and price cache housekeeping.
"""
from typing import Dict, Any, List, Optional
from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field
import asyncio
import logging

from cost_analyzer.domain.resource_models import ResourceDiff, ResourceWithId
from cost_analyzer.services.cost_service import CostAggregationService, CostEstimatorError


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/pricing", tags=["pricing"])


class TemplateResource(BaseModel):
    """A resource added to or removed from a template."""
    logicalId: str = Field(..., description="Logical ID of the resource")
    type: str = Field(..., description="Resource type (e.g., 'AWS::EC2::Instance')")
    properties: Dict[str, Any] = Field(default_factory=dict, description="Resource properties")

    def to_domain(self) -> ResourceWithId:
        return ResourceWithId.from_dict(self.model_dump())


class ModifiedTemplateResource(BaseModel):
    """A resource whose properties changed between templates."""
    logicalId: str = Field(..., description="Logical ID of the resource")
    type: str = Field(..., description="Resource type")
    oldProperties: Dict[str, Any] = Field(default_factory=dict, description="Properties before the change")
    newProperties: Dict[str, Any] = Field(default_factory=dict, description="Properties after the change")

class CostDeltaRequest(BaseModel):
    """Request model for computing the cost delta of a template diff."""
    region: str = Field(..., description="AWS region code (e.g., 'us-east-1')")
    added: List[TemplateResource] = Field(default_factory=list)
    removed: List[TemplateResource] = Field(default_factory=list)
    modified: List[ModifiedTemplateResource] = Field(default_factory=list)

    def to_diff(self) -> ResourceDiff:
        return ResourceDiff.from_dict(self.model_dump(include={"added", "removed", "modified"}))


class ResourceCostRequest(BaseModel):
    """Request model for pricing a single resource."""
    region: str = Field(..., description="AWS region code")
    resource: TemplateResource


def get_cost_service(request: Request) -> CostAggregationService:
    """Cost service owned by the application."""
    return request.app.state.cost_service


@router.post("/delta")
async def compute_cost_delta(request: Request, delta_request: CostDeltaRequest) -> Dict[str, Any]:
    """
    Compute the monthly cost delta of a template diff.

    Unsupported or unpriceable resources are reported with unknown
    confidence instead of failing the request.
    """
    cost_service = get_cost_service(request)
    try:
        delta = await cost_service.compute_delta(delta_request.to_diff(), delta_request.region)
    except (CostEstimatorError, ValueError) as error:
        raise HTTPException(status_code=400, detail=str(error))

    return {"status": "ok", "region": delta_request.region, "delta": delta.to_dict()}


@router.post("/resource")
async def compute_resource_cost(request: Request, cost_request: ResourceCostRequest) -> Dict[str, Any]:
    """Compute the monthly cost of a single resource."""
    if not cost_request.region:
        raise HTTPException(status_code=400, detail="Region is required to price a resource")
    try:
        resource = cost_request.resource.to_domain()
    except ValueError as error:
        raise HTTPException(status_code=400, detail=str(error))
    cost_service = get_cost_service(request)
    monthly_cost = await cost_service.get_resource_cost(resource, cost_request.region)
    return {
        "status": "ok",
        "logical_id": cost_request.resource.logicalId,
        "type": cost_request.resource.type,
        "monthly_cost": monthly_cost.to_dict(),
    }


@router.get("/cache")
async def get_cache_status(request: Request) -> Dict[str, Any]:
    """Persistent cache statistics and resolver counters."""
    resolver = get_cost_service(request).resolver
    store = resolver.store
    return {
        "status": "ok",
        "persistent_cache": store.stats().to_dict() if store is not None else None,
        "metrics": resolver.metrics.to_dict(),
    }


@router.post("/cache/prune")
async def prune_cache(request: Request) -> Dict[str, Any]:
    """Remove expired entries from the persistent cache."""
    store = get_cost_service(request).resolver.store
    removed = await asyncio.to_thread(store.prune) if store is not None else 0
    return {"status": "ok", "removed": removed}


@router.delete("/cache")
async def clear_cache(request: Request) -> Dict[str, Any]:
    """Empty both the in-memory and persistent price caches."""
    resolver = get_cost_service(request).resolver
    resolver.clear_memory()
    persisted: Optional[bool] = None
    if resolver.store is not None:
        persisted = await asyncio.to_thread(resolver.store.clear)
        if not persisted:
            logger.warning("Price cache cleared in memory but the empty document could not be written")
    return {"status": "ok", "persisted": persisted}
