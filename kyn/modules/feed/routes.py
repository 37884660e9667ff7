from fastapi import APIRouter, Depends
from kyn.database.supabase_client import get_supabase
from kyn.modules.feed.schemas import PostCreate, CommentCreate, PostResponse, CommentResponse
from kyn.modules.feed.service import FeedService
from kyn.modules.families.switcher import FamilyContext
from kyn.core.dependencies import require_family_permission
from supabase import Client
from typing import List

router = APIRouter(prefix="/feed", tags=["feed"])


@router.get("/posts", response_model=List[PostResponse])
async def list_posts(
    limit: int = 50,
    offset: int = 0,
    context: FamilyContext = Depends(require_family_permission("feed:read", active=True)),
    supabase: Client = Depends(get_supabase)
):
    """Posts of the selected (or given) family, newest first"""
    return FeedService(supabase, context).list_posts(limit=limit, offset=offset)


@router.post("/posts", response_model=PostResponse, status_code=201)
async def create_post(
    post: PostCreate,
    context: FamilyContext = Depends(require_family_permission("feed:post", active=True)),
    supabase: Client = Depends(get_supabase)
):
    return FeedService(supabase, context).create_post(post.content)


@router.post("/posts/{post_id}/comments", response_model=CommentResponse, status_code=201)
async def add_comment(
    post_id: str,
    comment: CommentCreate,
    context: FamilyContext = Depends(require_family_permission("feed:comment", active=True)),
    supabase: Client = Depends(get_supabase)
):
    return FeedService(supabase, context).add_comment(post_id, comment.content)
