"""Picks the first available agent, in registration order."""

from storefront.agent.selection.port import AgentSelectionPolicy


class FirstAvailable(AgentSelectionPolicy):
    name = "first_available"

    def select(self, candidates: list, order):
        return candidates[0]
