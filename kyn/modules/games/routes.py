from fastapi import APIRouter, Depends
from kyn.database.supabase_client import get_supabase
from kyn.modules.games.schemas import (
    AnswerRequest, AnswerResult, LeaderboardEntry, QuestionCreate, TriviaQuestionResponse
)
from kyn.modules.games.service import TriviaService
from kyn.modules.families.switcher import FamilyContext
from kyn.core.dependencies import require_family_permission
from supabase import Client
from typing import List

router = APIRouter(prefix="/games/trivia", tags=["games"])


@router.get("/questions", response_model=List[TriviaQuestionResponse])
async def list_questions(
    context: FamilyContext = Depends(require_family_permission("games:read", active=True)),
    supabase: Client = Depends(get_supabase)
):
    return TriviaService(supabase, context).list_questions()


@router.post("/questions", response_model=TriviaQuestionResponse, status_code=201)
async def add_question(
    question: QuestionCreate,
    context: FamilyContext = Depends(require_family_permission("games:create", active=True)),
    supabase: Client = Depends(get_supabase)
):
    return TriviaService(supabase, context).add_question(question)


@router.post("/questions/{question_id}/answer", response_model=AnswerResult)
async def answer_question(
    question_id: str,
    request: AnswerRequest,
    context: FamilyContext = Depends(require_family_permission("games:play", active=True)),
    supabase: Client = Depends(get_supabase)
):
    """Answer a question; a correct answer adds one point to the caller's score"""
    return TriviaService(supabase, context).answer(question_id, request.answer)


@router.get("/leaderboard", response_model=List[LeaderboardEntry])
async def leaderboard(
    context: FamilyContext = Depends(require_family_permission("games:read", active=True)),
    supabase: Client = Depends(get_supabase)
):
    """Scores in this family, highest first"""
    return TriviaService(supabase, context).leaderboard()
