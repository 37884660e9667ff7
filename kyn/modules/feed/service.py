import logging
from supabase import Client
from kyn.modules.feed.schemas import PostResponse, CommentResponse, Author
from kyn.modules.families.switcher import FamilyContext
from kyn.modules.profiles.service import ProfileService
from kyn.core.errors import OperationFailed, PostNotFound
from typing import Dict, List
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class FeedService:
    def __init__(self, supabase: Client, context: FamilyContext):
        self.supabase = supabase
        self.context = context
        self.profiles = ProfileService(supabase)

    def _authors(self, rows: List[Dict]) -> Dict[str, Author]:
        profiles = self.profiles.get_profiles_lite([r["author_id"] for r in rows])
        return {
            pid: Author(full_name=p.full_name, avatar_url=p.avatar_url)
            for pid, p in profiles.items()
        }

    def list_posts(self, limit: int = 50, offset: int = 0) -> List[PostResponse]:
        """Family posts, newest first, each with its comments oldest first"""
        try:
            posts_result = self.supabase.table("posts")\
                .select("*")\
                .eq("family_id", self.context.family_id)\
                .order("created_at", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()
            posts = posts_result.data or []
            if not posts:
                return []
            comments_result = self.supabase.table("comments")\
                .select("*")\
                .in_("post_id", [p["id"] for p in posts])\
                .order("created_at")\
                .execute()
            comments = comments_result.data or []
        except Exception as e:
            logger.error(f"Error fetching posts for family {self.context.family_id}: {e}")
            raise OperationFailed("Failed to fetch posts")

        authors = self._authors(posts + comments)
        by_post: Dict[str, List[CommentResponse]] = {}
        for comment in comments:
            by_post.setdefault(comment["post_id"], []).append(CommentResponse(
                **comment, author=authors.get(comment["author_id"])
            ))
        return [
            PostResponse(**post, author=authors.get(post["author_id"]), comments=by_post.get(post["id"], []))
            for post in posts
        ]

    def create_post(self, content: str) -> PostResponse:
        try:
            result = self.supabase.table("posts").insert({
                "family_id": self.context.family_id,
                "author_id": self.context.profile_id,
                "content": content,
            }).execute()
            if not result.data:
                raise OperationFailed("Failed to post")
            return PostResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating post in family {self.context.family_id}: {e}")
            raise OperationFailed("Failed to post")

    def add_comment(self, post_id: str, content: str) -> CommentResponse:
        try:
            post = self.supabase.table("posts")\
                .select("id")\
                .eq("id", post_id)\
                .eq("family_id", self.context.family_id)\
                .limit(1)\
                .execute()
            if not post.data:
                raise PostNotFound()

            result = self.supabase.table("comments").insert({
                "post_id": post_id,
                "family_id": self.context.family_id,
                "author_id": self.context.profile_id,
                "content": content,
            }).execute()
            if not result.data:
                raise OperationFailed("Failed to comment")
            return CommentResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error commenting on post {post_id}: {e}")
            raise OperationFailed("Failed to comment")
