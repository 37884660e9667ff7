import logging
from supabase import Client
from kyn.modules.polls.schemas import PollCreate, PollResponse, VoteResponse
from kyn.modules.families.switcher import FamilyContext
from kyn.core.errors import InvalidPollOption, OperationFailed, PollNotFound
from typing import Dict, List
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class PollService:
    def __init__(self, supabase: Client, context: FamilyContext):
        self.supabase = supabase
        self.context = context

    def list_polls(self) -> List[PollResponse]:
        """Family polls, newest first, with per-option vote counts and the caller's vote"""
        try:
            polls_result = self.supabase.table("polls")\
                .select("*")\
                .eq("family_id", self.context.family_id)\
                .order("created_at", desc=True)\
                .execute()
            polls = polls_result.data or []
            if not polls:
                return []
            votes_result = self.supabase.table("poll_votes")\
                .select("poll_id, profile_id, option_index")\
                .in_("poll_id", [p["id"] for p in polls])\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching polls for family {self.context.family_id}: {e}")
            raise OperationFailed("Failed to fetch polls")

        votes_by_poll: Dict[str, List[Dict]] = {}
        for vote in votes_result.data or []:
            votes_by_poll.setdefault(vote["poll_id"], []).append(vote)

        responses = []
        for poll in polls:
            counts = [0] * len(poll["options"])
            my_vote = None
            for vote in votes_by_poll.get(poll["id"], []):
                # Votes for options that no longer exist are ignored
                if 0 <= vote["option_index"] < len(counts):
                    counts[vote["option_index"]] += 1
                if vote["profile_id"] == self.context.profile_id:
                    my_vote = vote["option_index"]
            responses.append(PollResponse(**poll, vote_counts=counts, my_vote=my_vote))
        return responses

    def create_poll(self, poll: PollCreate) -> PollResponse:
        try:
            result = self.supabase.table("polls").insert({
                "family_id": self.context.family_id,
                "created_by": self.context.profile_id,
                "question": poll.question,
                "options": poll.options,
            }).execute()
            if not result.data:
                raise OperationFailed("Failed to create poll")
            created = result.data[0]
            logger.info(f"Poll {created['id']} created in family {self.context.family_id}")
            return PollResponse(**created, vote_counts=[0] * len(created["options"]))
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating poll in family {self.context.family_id}: {e}")
            raise OperationFailed("Failed to create poll")

    def vote(self, poll_id: str, option_index: int) -> VoteResponse:
        """Cast or change the caller's vote; (poll, profile) is unique so this upserts"""
        try:
            poll = self.supabase.table("polls")\
                .select("id, options")\
                .eq("id", poll_id)\
                .eq("family_id", self.context.family_id)\
                .limit(1)\
                .execute()
            if not poll.data:
                raise PollNotFound()
            if option_index >= len(poll.data[0]["options"]):
                raise InvalidPollOption()

            result = self.supabase.table("poll_votes").upsert({
                "poll_id": poll_id,
                "family_id": self.context.family_id,
                "profile_id": self.context.profile_id,
                "option_index": option_index,
            }, on_conflict="poll_id,profile_id").execute()
            if not result.data:
                raise OperationFailed("Failed to vote")
            return VoteResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error voting on poll {poll_id}: {e}")
            raise OperationFailed("Failed to vote")
