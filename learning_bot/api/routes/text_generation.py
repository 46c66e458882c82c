from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from learning_bot.api.dependencies import get_text_generation
from learning_bot.api.schemas import GeneratedTextOut
from learning_bot.services.text_generation import TextGenerationService

router = APIRouter()

TextGeneration = Annotated[TextGenerationService, Depends(get_text_generation)]


@router.get("/generate", response_model=GeneratedTextOut)
async def generate_text(
    text_generation: TextGeneration,
    user_id: int = Query(alias="userId"),
    category_id: int | None = Query(default=None, alias="categoryId"),
) -> GeneratedTextOut:
    story = await text_generation.generate(user_id, category_id)
    return GeneratedTextOut.from_story(story)
