from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from learning_bot.api.dependencies import get_vocabulary
from learning_bot.api.schemas import CategoryOut, CustomWordRequest, MessageOut, WordOut
from learning_bot.domain.errors import NotFoundError
from learning_bot.services.vocabulary import VocabularyService

router = APIRouter()

Vocabulary = Annotated[VocabularyService, Depends(get_vocabulary)]
UserId = Annotated[int, Query(alias="userId")]
OptionalCategoryId = Annotated[int | None, Query(alias="categoryId")]


@router.get("/all", response_model=list[WordOut])
async def all_words(vocabulary: Vocabulary) -> list[WordOut]:
    return [WordOut.from_record(word) for word in await vocabulary.all_words()]


@router.get("/categories", response_model=list[CategoryOut])
async def categories(vocabulary: Vocabulary) -> list[CategoryOut]:
    return [CategoryOut.from_record(item) for item in await vocabulary.categories()]


@router.get("/random", response_model=WordOut)
async def random_word(
    vocabulary: Vocabulary, user_id: UserId, category_id: OptionalCategoryId = None
) -> WordOut:
    return WordOut.from_record(await vocabulary.get_random_word(user_id, category_id))


@router.get("/random-word", response_model=WordOut)
async def word_for_learning(
    vocabulary: Vocabulary,
    user_id: UserId,
    category: str | None = Query(default=None),
) -> WordOut:
    return WordOut.from_record(await vocabulary.get_word_for_learning(user_id, category))


@router.post("/vocabulary/add", response_model=MessageOut)
async def add_to_vocabulary(
    vocabulary: Vocabulary,
    user_id: UserId,
    word_id: int = Query(alias="wordId"),
) -> MessageOut:
    added = await vocabulary.add_word_to_vocabulary(user_id, word_id)
    return MessageOut(message="Word added to vocabulary" if added else "Word already in vocabulary")


@router.get("/learned", response_model=list[WordOut])
async def learned_words(
    vocabulary: Vocabulary, user_id: UserId, category_id: OptionalCategoryId = None
) -> list[WordOut]:
    return [WordOut.from_record(word) for word in await vocabulary.learned_words(user_id, category_id)]


@router.get("/custom", response_model=list[WordOut])
async def custom_words(vocabulary: Vocabulary, user_id: UserId) -> list[WordOut]:
    return [WordOut.from_record(word) for word in await vocabulary.custom_words(user_id)]


@router.get("/custom/random", response_model=WordOut)
async def random_custom_word(vocabulary: Vocabulary, user_id: UserId) -> WordOut:
    word = await vocabulary.get_random_custom_word(user_id)
    if word is None:
        raise NotFoundError("No available words found in My Words category")
    return WordOut.from_record(word)


@router.delete("/custom/{word_id}", response_model=MessageOut)
async def delete_custom_word(word_id: int, vocabulary: Vocabulary, user_id: UserId) -> MessageOut:
    if not await vocabulary.delete_custom_word(user_id, word_id):
        raise NotFoundError("Word not found or not owned by user")
    return MessageOut(message="Word deleted")


@router.post("", response_model=WordOut)
@router.post("/custom", response_model=WordOut)
async def add_custom_word(payload: CustomWordRequest, vocabulary: Vocabulary) -> WordOut:
    word = await vocabulary.add_custom_word(
        payload.user_id, payload.text, payload.translation, payload.category_id
    )
    return WordOut.from_record(word)


@router.get("/category/{category}", response_model=list[WordOut])
async def words_by_category(category: str, vocabulary: Vocabulary) -> list[WordOut]:
    return [WordOut.from_record(word) for word in await vocabulary.words_by_category(category)]


@router.get("/{word_id}", response_model=WordOut)
async def get_word(word_id: int, vocabulary: Vocabulary) -> WordOut:
    return WordOut.from_record(await vocabulary.get_word(word_id))
