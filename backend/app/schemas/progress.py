"""Progress dashboard schemas."""

from datetime import datetime

from app.schemas.base import BaseSchema


class WindowStats(BaseSchema):
    """Aggregates for one trailing time window."""

    quizzes_taken: int
    avg_score: int  # Rounded mean percentage
    flashcards_created: int
    study_time: int  # Minutes, estimated from quiz count


class RecentQuiz(BaseSchema):
    """One recent quiz attempt with its quiz title."""

    title: str
    score: int
    total: int
    percentage: int
    completed_at: datetime


class ProgressResponse(BaseSchema):
    """Weekly and monthly progress with recent attempts."""

    week: WindowStats
    month: WindowStats
    recent_quizzes: list[RecentQuiz]
