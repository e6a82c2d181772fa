"""Single-conversation handoff prompts and summary preparation.

Calling an LLM to produce a summary is left to a caller-supplied
`summarize` callable; everything here is plain text work.
"""

import math
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from context_porter.errors import HandoffError
from context_porter.exporters.providers import handoff_closing, handoff_intro, normalize_provider
from context_porter.logging import get_logger
from context_porter.models import Conversation, Message

logger = get_logger("handoff")

# Rough estimate: one token per four characters of English text
CHARS_PER_TOKEN = 4
DEFAULT_TOKEN_LIMIT = 8000
RECENT_MESSAGE_COUNT = 5
# Conversations shorter than this are not worth summarizing automatically
AUTO_SUMMARY_THRESHOLD = 20

_CODE_FENCE = re.compile(r"```(\w+)?\n([\s\S]*?)```")

COMPRESSION_INSTRUCTIONS = {
    "low": (
        "Create a detailed summary that captures most of the conversation content with "
        "minimal compression. Include specific examples and detailed explanations."
    ),
    "medium": (
        "Create a balanced summary that captures the essential information while reducing "
        "verbosity. Focus on key points, decisions, and outcomes."
    ),
    "high": (
        "Create a concise summary that captures only the most critical information, main "
        "conclusions, and essential context needed for continuation."
    ),
    "ultra": (
        "Create an ultra-concise summary focusing only on the core outcome, key decisions, "
        "and minimal context needed to understand the conversation state."
    ),
}

Summarizer = Callable[[Sequence[Message]], str]


@dataclass
class Handoff:
    """A generated handoff prompt for one conversation."""

    content: str
    target_provider: str
    metadata: dict[str, Any] = field(default_factory=dict)


def compression_instructions(level: str | None) -> str:
    """Summarizer instructions for a compression level (medium when unknown)."""
    return COMPRESSION_INSTRUCTIONS.get(level or "", COMPRESSION_INSTRUCTIONS["medium"])


def _mark_code_blocks(content: str) -> str:
    return _CODE_FENCE.sub(
        lambda m: f"[CODE_BLOCK:{m.group(1) or ''}]\n{m.group(2)}\n[/CODE_BLOCK]",
        content,
    )


def format_messages_for_summary(
    messages: Sequence[Message],
    preserve_code_blocks: bool = True,
) -> str:
    """Flatten messages into the transcript text handed to a summarizer.

    Args:
        messages: Messages in sequence order
        preserve_code_blocks: Rewrite fenced code blocks as [CODE_BLOCK:lang] markers

    Returns:
        "**ROLE**: content" blocks separated by blank lines
    """
    blocks = []
    for message in messages:
        content = message.content
        if preserve_code_blocks and "```" in content:
            content = _mark_code_blocks(content)
        blocks.append(f"**{message.role.upper()}**: {content}")
    return "\n\n".join(blocks)


def estimate_token_count(text: str) -> int:
    """Approximate the token count of text."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def needs_summarization(messages: Sequence[Message], token_limit: int = DEFAULT_TOKEN_LIMIT) -> bool:
    """Check whether a transcript is estimated to exceed a token budget."""
    return estimate_token_count(format_messages_for_summary(messages)) > token_limit


def _run_summarizer(summarize: Summarizer, conversation: Conversation) -> str:
    try:
        summary = summarize(conversation.messages)
    except Exception as e:
        raise HandoffError(f"Failed to generate summary for conversation {conversation.id}: {e}") from e
    logger.info(
        "Generated summary: conversation=%s messages=%d chars=%d",
        conversation.id,
        len(conversation.messages),
        len(summary or ""),
    )
    return summary


def auto_summarize_if_needed(
    conversation: Conversation,
    summarize: Summarizer,
    threshold: int = AUTO_SUMMARY_THRESHOLD,
) -> str | None:
    """Summarize a long conversation that has no summary yet.

    The conversation is not modified; storing the returned summary is up to
    the caller.

    Args:
        conversation: Conversation to check
        summarize: Collaborator producing a summary from messages
        threshold: Minimum number of messages before summarizing

    Returns:
        The new summary, or None when the conversation is below the threshold
        or already has a summary

    Raises:
        HandoffError: If the summarize collaborator fails
    """
    if len(conversation.messages) < threshold:
        logger.debug(
            "Skipping summary, below threshold: conversation=%s messages=%d threshold=%d",
            conversation.id,
            len(conversation.messages),
            threshold,
        )
        return None
    if conversation.context_summary:
        logger.debug("Skipping summary, already summarized: conversation=%s", conversation.id)
        return None
    return _run_summarizer(summarize, conversation)


def format_handoff_content(
    conversation: Conversation,
    summary: str | None,
    target_provider: str | None,
    include_metadata: bool = False,
    custom_prompt: str | None = None,
    preserve_flow: bool = True,
) -> str:
    """Render the handoff prompt for one conversation.

    The summary is used when present. Without one, the last few messages are
    included when preserve_flow is set.
    """
    content = (custom_prompt or handoff_intro(target_provider)) + "\n\n"

    if include_metadata:
        source = conversation.ai_provider
        if conversation.model_version:
            source += f" ({conversation.model_version})"
        content += "**Original Conversation Details:**\n"
        content += f"- Title: {conversation.title}\n"
        content += f"- Previous AI: {source}\n"
        content += f"- Message Count: {conversation.effective_message_count}\n"
        if conversation.created_at is not None:
            content += f"- Created: {conversation.created_at.strftime('%Y-%m-%d')}\n"
        content += "\n"

    if summary:
        content += f"**Conversation Summary:**\n{summary}\n\n"
    elif preserve_flow and conversation.messages:
        content += "**Recent Messages:**\n"
        for message in conversation.messages[-RECENT_MESSAGE_COUNT:]:
            content += f"**{message.role.upper()}:** {message.content}\n\n"

    return content + handoff_closing(target_provider)


def generate_handoff(
    conversation: Conversation,
    target_provider: str | None,
    *,
    summarize: Summarizer | None = None,
    include_metadata: bool = False,
    custom_prompt: str | None = None,
    preserve_flow: bool = True,
    now: datetime | None = None,
) -> Handoff:
    """Build a handoff prompt, summarizing first when no summary exists.

    Args:
        conversation: Conversation to hand off
        target_provider: Provider the prompt is written for (generic when unknown)
        summarize: Optional collaborator producing a summary from messages
        include_metadata: Include the original conversation details block
        custom_prompt: Replaces the provider intro sentence
        preserve_flow: Fall back to recent messages when there is no summary
        now: Generation timestamp (defaults to current UTC time)

    Returns:
        The generated Handoff

    Raises:
        HandoffError: If the summarize collaborator fails
    """
    conversation.validate()
    provider = normalize_provider(target_provider)

    summary = conversation.context_summary
    if not summary and summarize is not None and conversation.messages:
        summary = _run_summarizer(summarize, conversation)

    content = format_handoff_content(
        conversation,
        summary,
        provider,
        include_metadata=include_metadata,
        custom_prompt=custom_prompt,
        preserve_flow=preserve_flow,
    )

    return Handoff(
        content=content,
        target_provider=provider,
        metadata={
            "sourceProvider": conversation.ai_provider,
            "originalMessageCount": conversation.effective_message_count,
            "hasCustomPrompt": bool(custom_prompt),
            "generatedAt": (now or datetime.now(timezone.utc)).isoformat(),
        },
    )
