"""Provider framing tables.

Fixed lookups keyed by target provider. Unknown keys fall back to "generic".
"""

TARGET_PROVIDERS = ("openai", "anthropic", "google", "mistral", "generic")
DEFAULT_TARGET_PROVIDER = "generic"

# Opening sentence of a context_prompt export
PROVIDER_PREFIXES = {
    "openai": "Please continue our conversation using the following context from previous sessions:",
    "anthropic": (
        "Here is the context from our previous conversations. "
        "Please use this information to continue our discussion:"
    ),
    "google": "Context from previous conversations:",
    "mistral": "Previous conversation context:",
    "generic": "Here is the context from previous AI conversations:",
}

# Closing sentence of a context_prompt export
PROVIDER_SUFFIXES = {
    "openai": (
        "Please acknowledge that you've reviewed this context and are ready to "
        "continue our conversation."
    ),
    "anthropic": (
        "I've provided this context so we can continue our discussion seamlessly. "
        "Please let me know you understand the background."
    ),
    "google": "Please confirm you understand this context before we proceed.",
    "mistral": "Please acknowledge the context and let's continue.",
    "generic": "Please acknowledge this context and continue our conversation.",
}

# Single-conversation handoff framing
HANDOFF_INTROS = {
    "openai": (
        "I need to continue a conversation that was started with another AI assistant. "
        "Here's the context:"
    ),
    "anthropic": (
        "I'm continuing a conversation from another AI system. "
        "Here's what we've discussed so far:"
    ),
    "google": "Continuing a conversation from a previous AI session. Context:",
    "mistral": "Resuming a conversation from another AI assistant. Previous context:",
    "generic": "Continuing an AI conversation from another platform. Context:",
}

HANDOFF_CLOSINGS = {
    "openai": "Please acknowledge this context and continue our conversation naturally.",
    "anthropic": (
        "I've provided this context so we can continue seamlessly. "
        "Please confirm you understand and we can proceed."
    ),
    "google": "Please review this context and let me know you're ready to continue.",
    "mistral": "Please confirm you understand this background and we can continue.",
    "generic": "Please acknowledge this context and continue the conversation.",
}

ROLE_ICONS = {
    "user": "\U0001f464",
    "assistant": "\U0001f916",
    "system": "\u2699\ufe0f",
}
DEFAULT_ROLE_ICON = "\U0001f4ac"


def normalize_provider(provider: str | None) -> str:
    """Map a requested target provider onto a known key, defaulting to generic."""
    if isinstance(provider, str):
        key = provider.strip().lower()
        if key in TARGET_PROVIDERS:
            return key
    return DEFAULT_TARGET_PROVIDER


def provider_prefix(provider: str | None) -> str:
    return PROVIDER_PREFIXES[normalize_provider(provider)]


def provider_suffix(provider: str | None) -> str:
    return PROVIDER_SUFFIXES[normalize_provider(provider)]


def handoff_intro(provider: str | None) -> str:
    return HANDOFF_INTROS[normalize_provider(provider)]


def handoff_closing(provider: str | None) -> str:
    return HANDOFF_CLOSINGS[normalize_provider(provider)]


def role_icon(role: str) -> str:
    return ROLE_ICONS.get(role, DEFAULT_ROLE_ICON)
