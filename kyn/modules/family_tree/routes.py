from fastapi import APIRouter, Depends
from kyn.database.supabase_client import get_supabase
from kyn.modules.family_tree.schemas import TreeNode, SetParentRequest
from kyn.modules.family_tree.service import FamilyTreeService
from kyn.modules.families.schemas import FamilyMemberResponse
from kyn.modules.families.switcher import FamilyContext
from kyn.core.dependencies import require_family_permission
from supabase import Client
from typing import List

router = APIRouter(prefix="/family-tree", tags=["family-tree"])


@router.get("", response_model=List[TreeNode])
async def get_family_tree(
    context: FamilyContext = Depends(require_family_permission("family:read", active=True)),
    supabase: Client = Depends(get_supabase)
):
    """Members of the family nested by parent"""
    return FamilyTreeService(supabase, context).get_tree()


@router.put("/{member_id}/parent", response_model=FamilyMemberResponse)
async def set_parent(
    member_id: str,
    request: SetParentRequest,
    context: FamilyContext = Depends(require_family_permission("family:manage_tree", active=True)),
    supabase: Client = Depends(get_supabase)
):
    """Place a member under another member (requires family admin)"""
    return FamilyTreeService(supabase, context).set_parent(member_id, request.parent_id)
