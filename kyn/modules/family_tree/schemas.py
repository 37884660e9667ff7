from pydantic import BaseModel
from typing import List, Optional


class TreeNode(BaseModel):
    member_id: str
    profile_id: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: str
    children: List["TreeNode"] = []


class SetParentRequest(BaseModel):
    parent_id: Optional[str] = None  # None detaches the member to a root


TreeNode.model_rebuild()
