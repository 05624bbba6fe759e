"""
Generation task prompts.

Task text handed to the RAG engine (syllabus, questions) or sent directly
to the model (enhancement).

Dependencies: langchain_core.prompts
System role: Prompt templates per job kind
"""

from langchain_core.prompts import PromptTemplate

SYLLABUS_TASK = PromptTemplate.from_template(
    """Design a syllabus for {subject}, class {class_level}, following the {board} curriculum.
Divide it into {num_units} units. For each unit give a title, 3-6 topics and the learning outcomes.
{instructions}
Respond with JSON only, in this shape:
{{"subject": "...", "class": "...", "board": "...", "units": [{{"title": "...", "topics": ["..."], "outcomes": ["..."]}}]}}"""
)

QUESTIONS_TASK = PromptTemplate.from_template(
    """Write {count} {difficulty} {question_type} questions on the topic "{topic}"
for {subject}, class {class_level}, {board} curriculum.
Each question needs the question text, the correct answer and a short explanation.
For multiple-choice questions also give exactly four options.
Respond with a JSON list only, in this shape:
[{{"question": "...", "options": ["..."], "answer": "...", "explanation": "..."}}]"""
)

ENHANCEMENT_TASK = PromptTemplate.from_template(
    """You are improving teaching material{scope}.
Instructions: {instructions}

Original content:
{content}

Return only the improved content, with no preamble."""
)


def scope_suffix(subject: str | None, class_level: str | None, board: str | None) -> str:
    """Describe the curriculum scope for the enhancement prompt, when known."""
    parts = []
    if subject:
        parts.append(subject)
    if class_level:
        parts.append(f"class {class_level}")
    if board:
        parts.append(board)
    return f" for {', '.join(parts)}" if parts else ""
