# chat/titles.py
from typing import List, Tuple

FALLBACK_WORDS = 4
FALLBACK_MAX_CHARS = 30

# first match wins
TITLE_RULES: List[Tuple[Tuple[str, ...], str]] = [
    (("interview",), "Interview Preparation"),
    (("resume", "cv"), "Resume Review"),
    (("career change", "transition"), "Career Transition"),
    (("salary", "negotiat"), "Salary Negotiation"),
    (("job search", "looking for"), "Job Search Strategy"),
    (("skill", "learn"), "Skill Development"),
    (("network",), "Professional Networking"),
    (("promotion", "advance"), "Career Advancement"),
]


def generate_title(first_message: str) -> str:
    """
    Derive a session title from the first user message.

    Keyword topics map to fixed titles; otherwise the first few words are
    used, cut to FALLBACK_MAX_CHARS with a trailing "...".
    """
    text = first_message or ""
    lowered = text.lower()
    for keywords, title in TITLE_RULES:
        if any(k in lowered for k in keywords):
            return title

    words = " ".join(text.split(" ")[:FALLBACK_WORDS])
    if len(words) > FALLBACK_MAX_CHARS:
        return words[:FALLBACK_MAX_CHARS] + "..."
    return words
