"""
Subject and topic catalog
"""
from typing import Dict, List

SUBJECT_TOPICS: Dict[str, Dict[str, List[str]]] = {
    "mathematics": {
        "numbers": ["addition", "subtraction", "multiplication", "division"],
        "algebra": ["equations", "expressions", "patterns"],
        "geometry": ["shapes", "angles", "measurements"],
        "statistics": ["data", "graphs", "probability"],
    },
    "english": {
        "grammar": ["parts of speech", "sentence structure", "punctuation"],
        "vocabulary": ["synonyms", "antonyms", "context clues"],
        "reading": ["comprehension", "main idea", "details"],
    },
}

DISPLAY_NAMES: Dict[str, Dict[str, str]] = {
    "mathematics": {
        "numbers": "Numbers & Operations",
        "algebra": "Algebra",
        "geometry": "Geometry",
        "statistics": "Statistics & Probability",
    },
    "english": {
        "grammar": "Grammar",
        "vocabulary": "Vocabulary",
        "reading": "Reading Comprehension",
    },
}


def topics_for(subject: str) -> List[str]:
    """Topics of a subject in their fixed cyclic order"""
    key = subject.strip().lower()
    if key not in SUBJECT_TOPICS:
        raise ValueError(f"Unknown subject: {subject}")
    return list(SUBJECT_TOPICS[key])


def subtopics_for(subject: str, topic: str) -> List[str]:
    validate_subject_topic(subject, topic)
    return list(SUBJECT_TOPICS[subject.strip().lower()][topic.strip().lower()])


def validate_subject_topic(subject: str, topic: str) -> None:
    """Raise ValueError unless topic belongs to subject"""
    topics = topics_for(subject)
    if topic.strip().lower() not in topics:
        raise ValueError(f"Invalid subject or topic combination: {subject}/{topic}")


def display_name(subject: str, topic: str) -> str:
    return DISPLAY_NAMES.get(subject.strip().lower(), {}).get(topic.strip().lower(), topic)
