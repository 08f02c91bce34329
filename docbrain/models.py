from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Difficulty = Literal["basic", "intermediate", "advanced"]
QuestionFormat = Literal["short-answer", "mcq"]

DIFFICULTY_RANK = {"basic": 0, "intermediate": 1, "advanced": 2}


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class SummarySection(CamelModel):
    heading: str
    content: str


class McqOption(CamelModel):
    letter: str
    text: str
    correct: bool


class Question(CamelModel):
    question: str
    answer: str
    solution: str
    difficulty: Difficulty
    type: str
    question_format: QuestionFormat = Field(default="short-answer", alias="questionFormat")
    topic: Optional[str] = None
    options: Optional[List[McqOption]] = None


class Flashcard(CamelModel):
    front: str
    back: str
    category: str
    difficulty: Difficulty
    topic: str


class ExtractionStats(CamelModel):
    total_sentences: int = Field(alias="totalSentences")
    total_questions: int = Field(alias="totalQuestions")
    total_flashcards: int = Field(alias="totalFlashcards")
    total_topics: int = Field(alias="totalTopics")
    character_count: int = Field(alias="characterCount")
    word_count: int = Field(alias="wordCount")


class ExtractionResult(CamelModel):
    summary: str
    summary_sections: List[SummarySection] = Field(alias="summarySections")
    questions: List[Question]
    flashcards: List[Flashcard]
    topics: List[str]
    stats: ExtractionStats


class UploadResult(ExtractionResult):
    filename: str
    file_size: int = Field(alias="fileSize")
    page_count: int = Field(alias="pageCount")


class ExtractRequest(BaseModel):
    text: str
    seed: Optional[int] = None


def difficulty_rank(item) -> int:
    return DIFFICULTY_RANK.get(item.difficulty, 0)
