from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from engigrow.core.database import get_db
from engigrow.models.user import User
from engigrow.services.post_service import post_service
from engigrow.api.dependencies import get_current_user, get_optional_post_author
from engigrow.api.responses import ApiResponse

router = APIRouter(tags=["posts"])


class PostCreate(BaseModel):
    post: str
    # Display name for anonymous posts; ignored when a token is sent
    user: Optional[str] = None


class CommentCreate(BaseModel):
    comment: str


class LikeToggle(BaseModel):
    post_id: int = Field(validation_alias=AliasChoices("post_id", "postId"))
    liked: bool


class CommentResponse(BaseModel):
    # Display name only; the author identity stays server-side
    username: str
    text: str
    timestamp: datetime


class PostResponse(BaseModel):
    id: int
    body: str
    author: str
    created_at: datetime
    updated_at: datetime
    comments: List[CommentResponse]
    like_count: int

    model_config = ConfigDict(from_attributes=True)


class LikeStatusResponse(BaseModel):
    liked: bool
    like_count: int


class LikeCountResponse(BaseModel):
    like_count: int


@router.post("/newpost", response_model=ApiResponse[PostResponse], status_code=status.HTTP_201_CREATED)
async def create_post(
    post_data: PostCreate,
    current_user: Optional[User] = Depends(get_optional_post_author),
    db: Session = Depends(get_db)
):
    """Publish a new post"""
    if current_user is not None:
        post = post_service.create(
            db, current_user.name, post_data.post, author_email=current_user.email)
    else:
        post = post_service.create(db, post_data.user or "", post_data.post)
    return ApiResponse(message="Post created successfully", data=PostResponse.model_validate(post))


@router.get("/allposts", response_model=ApiResponse[List[PostResponse]])
async def list_posts(db: Session = Depends(get_db)):
    """List every post, newest first"""
    posts = [PostResponse.model_validate(post) for post in post_service.list_all(db)]
    return ApiResponse(message="Posts fetched successfully", data=posts)


@router.get("/posts/{post_id}/likes", response_model=ApiResponse[LikeStatusResponse])
async def get_like_status(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Whether the caller likes the post, plus its like count"""
    like_status = post_service.like_status(db, post_id, current_user.email)
    return ApiResponse(
        message="Like status fetched successfully",
        data=LikeStatusResponse(liked=like_status.liked, like_count=like_status.like_count),
    )


@router.get("/posts/{post_id}/allcomments", response_model=ApiResponse[List[CommentResponse]])
async def list_comments(post_id: int, db: Session = Depends(get_db)):
    """Comments of a post in the order they were written"""
    comments = [CommentResponse.model_validate(comment)
                for comment in post_service.list_comments(db, post_id)]
    return ApiResponse(message="Comments fetched successfully", data=comments)


@router.post(
    "/posts/{post_id}/comments",
    response_model=ApiResponse[CommentResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    post_id: int,
    comment_data: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Comment on a post as the current user"""
    comment = post_service.add_comment(
        db, post_id, current_user.email, current_user.name, comment_data.comment)
    return ApiResponse(message="Comment added successfully", data=CommentResponse.model_validate(comment))


@router.post("/posts/like", response_model=ApiResponse[LikeCountResponse])
async def toggle_like(
    like_data: LikeToggle,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Like or unlike a post; repeating the same action changes nothing"""
    like_count = post_service.toggle_like(
        db, like_data.post_id, current_user.email, like_data.liked)
    return ApiResponse(message="Like status updated", data=LikeCountResponse(like_count=like_count))
