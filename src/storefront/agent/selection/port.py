"""Agent selection port.

Decides which of the available agents at a local station takes an order.
Policies are swappable so ranking (nearest, best rated) can be introduced
without touching the assignment flow.
"""

from abc import ABC, abstractmethod


class AgentSelectionPolicy(ABC):
    name: str = "abstract"

    @abstractmethod
    def select(self, candidates: list, order):
        """Return one of ``candidates`` for ``order``. ``candidates`` is never empty."""
        ...
