import logging
from supabase import Client
from kyn.modules.games.schemas import (
    AnswerResult, LeaderboardEntry, QuestionCreate, TriviaQuestionResponse
)
from kyn.modules.families.service import first_row
from kyn.modules.families.switcher import FamilyContext
from kyn.modules.profiles.service import ProfileService
from kyn.core.errors import OperationFailed, QuestionNotFound
from typing import List
from fastapi import HTTPException

logger = logging.getLogger(__name__)


def normalize_answer(value: str) -> str:
    return value.strip().lower()


class TriviaService:
    def __init__(self, supabase: Client, context: FamilyContext):
        self.supabase = supabase
        self.context = context
        self.profiles = ProfileService(supabase)

    def list_questions(self) -> List[TriviaQuestionResponse]:
        """Questions in the order they were added; answers stay server-side"""
        try:
            result = self.supabase.table("trivia_questions")\
                .select("id, family_id, question, created_by, created_at")\
                .eq("family_id", self.context.family_id)\
                .order("created_at")\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching trivia for family {self.context.family_id}: {e}")
            raise OperationFailed("Failed to fetch questions")
        return [TriviaQuestionResponse(**row) for row in result.data or []]

    def add_question(self, question: QuestionCreate) -> TriviaQuestionResponse:
        try:
            result = self.supabase.table("trivia_questions").insert({
                "family_id": self.context.family_id,
                "created_by": self.context.profile_id,
                "question": question.question,
                "answer": question.answer,
            }).execute()
            if not result.data:
                raise OperationFailed("Failed to add question")
            return TriviaQuestionResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error adding trivia question in family {self.context.family_id}: {e}")
            raise OperationFailed("Failed to add question")

    def answer(self, question_id: str, answer: str) -> AnswerResult:
        """Check an answer (case and surrounding whitespace ignored); a correct one scores a point"""
        try:
            result = self.supabase.table("trivia_questions")\
                .select("id, answer")\
                .eq("id", question_id)\
                .eq("family_id", self.context.family_id)\
                .limit(1)\
                .execute()
            if not result.data:
                raise QuestionNotFound()
            if normalize_answer(result.data[0]["answer"]) != normalize_answer(answer):
                return AnswerResult(correct=False)

            scored = self.supabase.rpc("increment_trivia_score", {
                "p_family_id": self.context.family_id,
                "p_profile_id": self.context.profile_id,
            }).execute()
            row = first_row(scored.data)
            return AnswerResult(correct=True, score=row["score"] if row else None)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error answering trivia question {question_id}: {e}")
            raise OperationFailed("Failed to answer question")

    def leaderboard(self) -> List[LeaderboardEntry]:
        try:
            result = self.supabase.table("trivia_scores")\
                .select("profile_id, score")\
                .eq("family_id", self.context.family_id)\
                .order("score", desc=True)\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching leaderboard for family {self.context.family_id}: {e}")
            raise OperationFailed("Failed to fetch leaderboard")

        rows = result.data or []
        profiles = self.profiles.get_profiles_lite([r["profile_id"] for r in rows])
        entries = []
        for row in rows:
            profile = profiles.get(row["profile_id"])
            entries.append(LeaderboardEntry(
                profile_id=row["profile_id"],
                score=row["score"],
                full_name=profile.full_name if profile else None,
                avatar_url=profile.avatar_url if profile else None,
            ))
        return entries
