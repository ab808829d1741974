"""
Custom field definition endpoints, scoped per agent and property/listing type combination.
"""

from fastapi import APIRouter, Depends, Path, status
from typing import Any, Dict
from uuid import UUID

from flowestate.models.agent import Agent
from flowestate.schemas.custom_field import (
    CustomFieldClone,
    CustomFieldCreate,
    CustomFieldUpdate,
    SuggestFieldsRequest,
)
from flowestate.schemas.error import get_crud_error_responses
from flowestate.services.custom_field import CustomFieldService
from flowestate.utils.dependencies import get_current_agent, get_custom_field_service

router = APIRouter(prefix="/custom-fields", tags=["Custom Fields"])


@router.get("", summary="List my custom fields")
async def list_fields(
    current_agent: Agent = Depends(get_current_agent),
    field_service: CustomFieldService = Depends(get_custom_field_service)
) -> Dict[str, Any]:
    fields = await field_service.list_fields(current_agent)
    return {"fields": [field.to_dict() for field in fields]}


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create custom field",
    description="At most 5 fields per property type and listing type.",
    responses=get_crud_error_responses()
)
async def create_field(
    data: CustomFieldCreate,
    current_agent: Agent = Depends(get_current_agent),
    field_service: CustomFieldService = Depends(get_custom_field_service)
) -> Dict[str, Any]:
    field = await field_service.create_field(data, current_agent)
    return {"success": True, "field": field.to_dict()}


@router.post(
    "/suggest",
    status_code=status.HTTP_201_CREATED,
    summary="Add suggested fields",
    description="Seed an empty combination with five built-in fields.",
    responses=get_crud_error_responses()
)
async def suggest_fields(
    request: SuggestFieldsRequest,
    current_agent: Agent = Depends(get_current_agent),
    field_service: CustomFieldService = Depends(get_custom_field_service)
) -> Dict[str, Any]:
    fields = await field_service.suggest_fields(
        request.property_type, request.listing_type, request.language, current_agent
    )
    return {"success": True, "fields": [field.to_dict() for field in fields], "count": len(fields)}


@router.put("/{field_id}", summary="Update custom field", responses=get_crud_error_responses())
async def update_field(
    data: CustomFieldUpdate,
    field_id: UUID = Path(..., description="Custom field ID"),
    current_agent: Agent = Depends(get_current_agent),
    field_service: CustomFieldService = Depends(get_custom_field_service)
) -> Dict[str, Any]:
    field = await field_service.update_field(field_id, data, current_agent)
    return {"success": True, "field": field.to_dict()}


@router.delete("/{field_id}", summary="Delete custom field", responses=get_crud_error_responses())
async def delete_field(
    field_id: UUID = Path(..., description="Custom field ID"),
    current_agent: Agent = Depends(get_current_agent),
    field_service: CustomFieldService = Depends(get_custom_field_service)
) -> Dict[str, Any]:
    await field_service.delete_field(field_id, current_agent)
    return {"success": True}


@router.post(
    "/{field_id}/clone",
    status_code=status.HTTP_201_CREATED,
    summary="Clone custom field to another combination",
    responses=get_crud_error_responses()
)
async def clone_field(
    request: CustomFieldClone,
    field_id: UUID = Path(..., description="Custom field ID"),
    current_agent: Agent = Depends(get_current_agent),
    field_service: CustomFieldService = Depends(get_custom_field_service)
) -> Dict[str, Any]:
    field = await field_service.clone_field(
        field_id, request.target_property_type, request.target_listing_type, current_agent
    )
    return {"success": True, "field": field.to_dict()}
