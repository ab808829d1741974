"""
Property management API endpoints: CRUD, public pages, duplication, translation
and the AI-assisted capture flow (photos, audio transcription, listing generation).
"""

from fastapi import APIRouter, Depends, File, Path, UploadFile, status
from typing import Any, Dict, List, Optional
from uuid import UUID

from flowestate.models.agent import Agent
from flowestate.schemas.property import (
    GenerateRequest,
    PhotoUploadResponse,
    PropertyCopyResponse,
    PropertyCreate,
    PropertyCreatedResponse,
    PropertyUpdate,
    TranscriptionResponse,
    TranslateRequest,
)
from flowestate.schemas.error import (
    get_common_error_responses,
    get_crud_error_responses,
    get_error_responses,
    get_integration_error_responses,
)
from flowestate.services.property import PropertyService
from flowestate.utils.dependencies import (
    get_current_agent,
    get_edit_principal,
    get_property_service,
    get_upload_principal,
)
from flowestate.utils.principal import Principal

router = APIRouter(prefix="/properties", tags=["Properties"])


@router.post(
    "",
    response_model=PropertyCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create property",
    description="Create a listing. Accepts a session or an unspent upload token.",
    responses=get_crud_error_responses()
)
async def create_property(
    property_data: PropertyCreate,
    principal: Principal = Depends(get_upload_principal),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyCreatedResponse:
    """
    Create a new property listing.

    Args:
        property_data: Property creation data
        principal: Signed-in agent or upload token holder
        property_service: Property service instance

    Returns:
        Slug and key fields of the created property
    """
    property_obj = await property_service.create_property(property_data, principal)
    return PropertyCreatedResponse(
        propertyId=property_obj.slug,
        property={
            "id": str(property_obj.id),
            "slug": property_obj.slug,
            "title": property_obj.title,
            "price": float(property_obj.price) if property_obj.price is not None else None,
        }
    )


@router.get("", summary="List my properties", responses=get_error_responses(401))
async def list_properties(
    current_agent: Agent = Depends(get_current_agent),
    property_service: PropertyService = Depends(get_property_service)
) -> Dict[str, Any]:
    properties = await property_service.list_properties(current_agent)
    return {"properties": [prop.to_summary_dict() for prop in properties]}


@router.get(
    "/public/{slug}",
    summary="Public property page",
    description="Get a property by slug with public agent details. Each call counts one view.",
    responses=get_error_responses(404)
)
async def get_public_property(
    slug: str = Path(..., description="Property slug"),
    property_service: PropertyService = Depends(get_property_service)
) -> Dict[str, Any]:
    property_obj = await property_service.get_public_property(slug)
    return {"property": property_obj.to_dict(include_agent=True)}


@router.get("/{property_id}", summary="Get my property", responses=get_error_responses(401, 404))
async def get_property(
    property_id: UUID = Path(..., description="Property ID"),
    current_agent: Agent = Depends(get_current_agent),
    property_service: PropertyService = Depends(get_property_service)
) -> Dict[str, Any]:
    property_obj = await property_service.get_property(property_id, current_agent)
    return {"property": property_obj.to_dict()}


@router.put(
    "/{property_id}",
    summary="Update property",
    description="Update allowed fields and remove photos from storage. Upload token holders "
                "may only update the property created with their token.",
    responses=get_crud_error_responses()
)
async def update_property(
    property_data: PropertyUpdate,
    property_id: UUID = Path(..., description="Property ID"),
    principal: Principal = Depends(get_edit_principal),
    property_service: PropertyService = Depends(get_property_service)
) -> Dict[str, Any]:
    updated = await property_service.update_property(property_id, property_data, principal)
    if updated is None:
        return {"success": True, "message": "Nothing to update"}
    return {"success": True, "property": updated.to_dict()}


@router.delete("/{property_id}", summary="Delete property", responses=get_crud_error_responses())
async def delete_property(
    property_id: UUID = Path(..., description="Property ID"),
    current_agent: Agent = Depends(get_current_agent),
    property_service: PropertyService = Depends(get_property_service)
) -> Dict[str, Any]:
    await property_service.delete_property(property_id, current_agent)
    return {"success": True, "message": "Property deleted"}


@router.post(
    "/{property_id}/duplicate",
    response_model=PropertyCopyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Duplicate property",
    responses=get_crud_error_responses()
)
async def duplicate_property(
    property_id: UUID = Path(..., description="Property ID"),
    current_agent: Agent = Depends(get_current_agent),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyCopyResponse:
    copy = await property_service.duplicate_property(property_id, current_agent)
    return PropertyCopyResponse(newPropertyId=str(copy.id), slug=copy.slug)


@router.post(
    "/{property_id}/translate",
    response_model=PropertyCopyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Translate property",
    description="Create a copy of the property in another language, translated with AI.",
    responses={**get_crud_error_responses(), **get_integration_error_responses()}
)
async def translate_property(
    request: TranslateRequest,
    property_id: UUID = Path(..., description="Property ID"),
    current_agent: Agent = Depends(get_current_agent),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyCopyResponse:
    translated = await property_service.translate_property(
        property_id, request.target_language, request.use_ai, current_agent
    )
    return PropertyCopyResponse(newPropertyId=str(translated.id), slug=translated.slug)


@router.post(
    "/photos",
    response_model=PhotoUploadResponse,
    summary="Upload listing photos",
    description="Store up to 20 photos of at most 5 MB each. Oversized files are skipped.",
    responses=get_common_error_responses()
)
async def upload_photos(
    photos: Optional[List[UploadFile]] = File(None, description="Photo files"),
    principal: Principal = Depends(get_upload_principal),
    property_service: PropertyService = Depends(get_property_service)
) -> PhotoUploadResponse:
    urls = await property_service.upload_photos(photos or [], principal)
    return PhotoUploadResponse(urls=urls, count=len(urls))


@router.post(
    "/transcribe",
    response_model=TranscriptionResponse,
    summary="Transcribe audio description",
    responses={**get_common_error_responses(), **get_integration_error_responses()}
)
async def transcribe_audio(
    audio: Optional[UploadFile] = File(None, description="Recorded description, up to 25 MB"),
    principal: Principal = Depends(get_upload_principal),
    property_service: PropertyService = Depends(get_property_service)
) -> TranscriptionResponse:
    transcription = await property_service.transcribe_audio(audio)
    return TranscriptionResponse(transcription=transcription)


@router.post(
    "/generate",
    summary="Generate listing from transcription",
    responses={**get_common_error_responses(), **get_integration_error_responses()}
)
async def generate_listing(
    request: GenerateRequest,
    principal: Principal = Depends(get_upload_principal),
    property_service: PropertyService = Depends(get_property_service)
) -> Dict[str, Any]:
    property_data, tokens = await property_service.generate_listing(request.transcription)
    return {"success": True, "property": property_data, "tokensUsed": tokens}
