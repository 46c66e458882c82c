from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Body, Depends, Query

from learning_bot.api.dependencies import get_vocabulary
from learning_bot.api.schemas import AddUserRequest, UserOut
from learning_bot.services.vocabulary import VocabularyService

router = APIRouter()

Vocabulary = Annotated[VocabularyService, Depends(get_vocabulary)]


@router.get("/exists", response_model=bool)
async def user_exists(vocabulary: Vocabulary, user_id: int = Query(alias="userId")) -> bool:
    return await vocabulary.user_exists(user_id)


@router.post("/add", response_model=UserOut)
async def add_user(
    payload: Annotated[int | AddUserRequest, Body()], vocabulary: Vocabulary
) -> UserOut:
    # body is the bare telegram id; {"userId": ...} is accepted as well
    user_id = payload if isinstance(payload, int) else payload.user_id
    user = await vocabulary.register_user(user_id)
    return UserOut.from_record(user)


@router.get("/{user_id}", response_model=UserOut)
async def get_user(user_id: int, vocabulary: Vocabulary) -> UserOut:
    return UserOut.from_record(await vocabulary.get_user(user_id))
