from datetime import datetime
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, ConfigDict
from engigrow.core.database import get_db
from engigrow.models.user import User
from engigrow.services.collaboration_service import collaboration_service
from engigrow.api.dependencies import get_current_user
from engigrow.api.responses import ApiResponse

router = APIRouter(tags=["collaboration"])


class CollaborationCreate(BaseModel):
    title: str
    description: str
    skills: str
    contact: str


class CollaborationResponse(BaseModel):
    id: int
    title: str
    description: str
    skills: str
    contact: str
    owner_name: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


@router.post(
    "/addcolabpost",
    response_model=ApiResponse[CollaborationResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_collaboration_request(
    request_data: CollaborationCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Post a request for project partners"""
    request = collaboration_service.create(
        db,
        current_user,
        title=request_data.title,
        description=request_data.description,
        skills=request_data.skills,
        contact=request_data.contact,
    )
    return ApiResponse(message="Collaboration request added successfully",
                       data=CollaborationResponse.model_validate(request))


@router.get("/collaboration/allcolabposts", response_model=ApiResponse[List[CollaborationResponse]])
async def list_collaboration_requests(db: Session = Depends(get_db)):
    """All collaboration requests, newest first"""
    requests = [CollaborationResponse.model_validate(request)
                for request in collaboration_service.list_recent(db)]
    return ApiResponse(message="Collaboration requests fetched successfully", data=requests)
