"""
Prompt construction for question generators
"""
from adaptive_quiz.models.questions import GenerationRequest
from adaptive_quiz.services.catalog import subtopics_for

SYSTEM_PROMPT = (
    "You are a specialized education AI focused on generating accurate, grade-appropriate "
    "multiple-choice assessment questions. Avoid repeating question texts. Return only valid JSON."
)

_QUESTION_SHAPE = """{{
      "questionText": "clear question statement",
      "options": ["option1", "option2", "option3", "option4"],
      "correctAnswer": "exact matching option",
      "hint": "helpful clue without direct answer",
      "explanation": "step-by-step solution",
      "level": "{level}",
      "topic": "{topic}",
      "grade": {grade}
    }}"""


def build_question_prompt(request: GenerationRequest) -> str:
    """Build the user prompt for a (possibly batched) generation request"""
    level = request.difficulty_level.value
    try:
        subtopics = ", ".join(subtopics_for(request.subject, request.topic))
    except ValueError:
        subtopics = request.topic

    continuity = ""
    if request.previous_level is not None and request.previous_level != request.difficulty_level:
        continuity = (
            f"\nThe previous questions were at {request.previous_level.label} difficulty. "
            f"Now generate questions at {request.difficulty_level.label} difficulty while maintaining progression."
        )

    avoid = ""
    if request.avoid_texts:
        listed = "\n".join(f"- {text}" for text in request.avoid_texts)
        avoid = f"\nDo NOT repeat or rephrase any of these questions:\n{listed}\n"

    shape = _QUESTION_SHAPE.format(level=level, topic=request.topic, grade=request.grade)
    if request.count > 1:
        output = (
            f"Return ONLY valid JSON with an array of {request.count} distinct questions:\n"
            f'{{\n  "questions": [\n    {shape}\n  ]\n}}'
        )
        quantity = f"{request.count} diverse"
    else:
        output = f"Return ONLY valid JSON with this structure:\n{shape}"
        quantity = "one"

    return f"""Create {quantity} {request.difficulty_level.label} difficulty {request.subject} question(s) for grade {request.grade} students.
Main Topic: {request.topic}
Subtopics: {subtopics}
{continuity}
Requirements:
- Generate unique values/numbers
- Question must require logical thinking
- Provide exactly 4 options that are plausible but distinct
- Ensure the correctAnswer matches exactly one of the options
- Include a helpful hint that does not give away the answer
- Include a clear step-by-step explanation
{avoid}
{output}"""
