import logging
from typing import Dict, List, Optional, Set

from fastapi import HTTPException
from supabase import Client

from kyn.core.errors import InvalidTreeParent, MemberNotFound, OperationFailed
from kyn.modules.families.schemas import FamilyMemberResponse
from kyn.modules.families.service import FamilyService
from kyn.modules.families.switcher import FamilyContext
from kyn.modules.family_tree.schemas import TreeNode

logger = logging.getLogger(__name__)


def build_tree(members: List[FamilyMemberResponse]) -> List[TreeNode]:
    """Nest members under their parent.

    A member whose parent is missing from the family is a root. Members caught
    in a parent cycle are attached once, starting from the first one seen.
    """
    by_id = {m.id: m for m in members}
    children: Dict[str, List[FamilyMemberResponse]] = {}
    roots = []
    for member in members:
        if member.parent_id and member.parent_id in by_id and member.parent_id != member.id:
            children.setdefault(member.parent_id, []).append(member)
        else:
            roots.append(member)

    visited: Set[str] = set()

    def build(member: FamilyMemberResponse) -> TreeNode:
        visited.add(member.id)
        return TreeNode(
            member_id=member.id,
            profile_id=member.profile_id,
            full_name=member.full_name,
            avatar_url=member.avatar_url,
            role=member.role,
            children=[build(child) for child in children.get(member.id, []) if child.id not in visited],
        )

    nodes = [build(root) for root in roots]
    for member in members:
        if member.id not in visited:
            nodes.append(build(member))
    return nodes


class FamilyTreeService:
    def __init__(self, supabase: Client, context: FamilyContext):
        self.supabase = supabase
        self.context = context
        self.families = FamilyService(supabase)

    def get_tree(self) -> List[TreeNode]:
        return build_tree(self.families.list_members(self.context.family_id))

    def set_parent(self, member_id: str, parent_id: Optional[str]) -> FamilyMemberResponse:
        """Attach a member under another member of the same family (or detach with None)"""
        members = {m.id: m for m in self.families.list_members(self.context.family_id)}
        if member_id not in members:
            raise MemberNotFound()
        if parent_id is not None:
            if parent_id not in members or parent_id == member_id:
                raise InvalidTreeParent()
            # Walk up from the new parent; meeting the member again means a cycle
            ancestor = parent_id
            seen: Set[str] = set()
            while ancestor and ancestor in members and ancestor not in seen:
                if ancestor == member_id:
                    raise InvalidTreeParent()
                seen.add(ancestor)
                ancestor = members[ancestor].parent_id

        try:
            result = self.supabase.table("family_members")\
                .update({"parent_id": parent_id})\
                .eq("id", member_id)\
                .eq("family_id", self.context.family_id)\
                .execute()
            if not result.data:
                raise MemberNotFound()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error setting parent of {member_id}: {e}")
            raise OperationFailed("Failed to update family tree")

        member = members[member_id]
        return member.model_copy(update={"parent_id": parent_id})
