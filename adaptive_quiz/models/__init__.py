"""
Pydantic models for questions, attempts, reports and session views
"""
from adaptive_quiz.models.questions import *
from adaptive_quiz.models.attempts import *
from adaptive_quiz.models.reports import *
from adaptive_quiz.models.session import *
