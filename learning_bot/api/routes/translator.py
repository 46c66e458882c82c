from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from learning_bot.api.dependencies import get_translation, get_vocabulary
from learning_bot.api.schemas import (
    CustomWordRequest,
    LanguageOut,
    TranslateRequest,
    TranslationOut,
    WordOut,
)
from learning_bot.services.translation import TranslationService
from learning_bot.services.vocabulary import VocabularyService

router = APIRouter()

Translation = Annotated[TranslationService, Depends(get_translation)]
Vocabulary = Annotated[VocabularyService, Depends(get_vocabulary)]


@router.post("/translate", response_model=TranslationOut)
async def translate(payload: TranslateRequest, translation: Translation) -> TranslationOut:
    result = await translation.translate(payload.text, payload.target_language_code)
    return TranslationOut.from_result(result)


@router.post("/save", response_model=WordOut)
async def save_translation(payload: CustomWordRequest, vocabulary: Vocabulary) -> WordOut:
    word = await vocabulary.add_custom_word(
        payload.user_id, payload.text, payload.translation, payload.category_id
    )
    return WordOut.from_record(word)


@router.get("/languages", response_model=list[LanguageOut])
async def supported_languages(translation: Translation) -> list[LanguageOut]:
    return [LanguageOut.from_info(info) for info in await translation.supported_languages()]
