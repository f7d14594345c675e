"""Agent selection policy factory.

Provides get_selection_policy() / set_selection_policy() to swap policies.
Defaults to FirstAvailable.
"""

from storefront.agent.selection.first_available import FirstAvailable
from storefront.agent.selection.port import AgentSelectionPolicy

_current_policy: AgentSelectionPolicy | None = None


def get_selection_policy() -> AgentSelectionPolicy:
    global _current_policy
    if _current_policy is None:
        _current_policy = FirstAvailable()
    return _current_policy


def set_selection_policy(policy: AgentSelectionPolicy) -> None:
    """Override the active policy (useful for tests)."""
    global _current_policy
    _current_policy = policy


def reset_selection_policy() -> None:
    global _current_policy
    _current_policy = None
