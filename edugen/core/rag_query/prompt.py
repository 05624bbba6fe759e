"""
RAG prompt template.

Single-prompt layout for the model server: instructions, optional
conversation history, retrieved context (or an explicit empty-context
notice) and the query.

Dependencies: langchain_core.prompts
System role: Prompt template for retrieval-grounded generation
"""

from langchain_core.prompts import PromptTemplate

from edugen.models.retrieval import ConversationTurn, Passage

SYSTEM_INSTRUCTIONS = """You are an experienced curriculum designer and teacher's assistant.

## Instructions
1. Ground your answer in the reference material below whenever it is relevant
2. Match the subject, class level and board named in the request
3. Do not invent facts about the curriculum that the material contradicts
4. Follow any output format requested in the task exactly"""

EMPTY_CONTEXT_NOTICE = (
    "No reference material matched this request. "
    "Answer from general curriculum knowledge and keep claims conservative."
)

RAG_PROMPT = PromptTemplate.from_template(
    """{instructions}

{chat_history}Reference material:
{context}

Task:
{question}
"""
)

_ROLE_LABELS = {"user": "User", "assistant": "Assistant", "system": "System"}


def format_history(history: list[ConversationTurn]) -> str:
    """Render prior turns; empty string when there are none."""
    if not history:
        return ""
    lines = [f"{_ROLE_LABELS[turn.role]}: {turn.content}" for turn in history]
    return "Previous Conversation:\n" + "\n".join(lines) + "\n\n"


def format_context(passages: list[Passage]) -> str:
    """Render passages in score order; the empty-context notice when there are none."""
    if not passages:
        return EMPTY_CONTEXT_NOTICE
    chunks = []
    for passage in passages:
        entity_type = passage.metadata.get("entity_type", "source")
        chunks.append(
            f"---\n[{entity_type} {passage.source_id} | score {passage.score:.3f}]\n\n"
            f"{passage.text}\n---"
        )
    return "\n".join(chunks)


def build_rag_prompt(
    question: str,
    passages: list[Passage],
    history: list[ConversationTurn],
) -> str:
    """
    Assemble the full prompt.

    Args:
        question: Task or user query
        passages: Retrieved passages, already truncated to budget
        history: Prior conversation turns, already trimmed

    Returns:
        str: Prompt text for the model server
    """
    return RAG_PROMPT.format(
        instructions=SYSTEM_INSTRUCTIONS,
        chat_history=format_history(history),
        context=format_context(passages),
        question=question,
    )
