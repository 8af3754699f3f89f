# pointpoll/services/allocation_service.py
"""
Point allocation engine.

A voter distributes a fixed budget of points across the choices of one
poll. Every edit is clamped to a per-choice ceiling of
``current + remaining``, so the total can never exceed the budget and no
other choice ever has to be rescaled.

Everything here is pure: operations take a state and return a new one.
AllocationEngine wraps a state for a single voting session.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, Literal, Mapping

from pointpoll.core.exceptions import (
    EmptyAllocationError,
    InvalidAllocationError,
    InvalidChoiceError,
    NotFullyAllocatedError,
)

BUDGET = 100

CompletionPolicy = Literal["full", "at_least_one"]
FULL = "full"
AT_LEAST_ONE = "at_least_one"


@dataclass(frozen=True)
class AllocationState:
    """Per-choice points for one voter on one poll. Never persisted."""

    values: Dict[str, int] = field(default_factory=dict)
    budget: int = BUDGET

    @property
    def total(self) -> int:
        return sum(self.values.values())

    @property
    def remaining(self) -> int:
        return self.budget - self.total

    def __getitem__(self, choice_id: str) -> int:
        return self.values[choice_id]

    def __contains__(self, choice_id: str) -> bool:
        return choice_id in self.values


def initialize(choice_ids: Iterable[str], budget: int = BUDGET) -> AllocationState:
    """Every choice starts at 0, remaining == budget"""
    return AllocationState(values={choice_id: 0 for choice_id in choice_ids}, budget=budget)


def remaining(state: AllocationState) -> int:
    return state.remaining


def total(state: AllocationState) -> int:
    return state.total


def cap(state: AllocationState, choice_id: str) -> int:
    """Most points this choice can hold without touching any other choice"""
    if choice_id not in state:
        raise InvalidChoiceError(f"Unknown choice: {choice_id}")
    return state[choice_id] + state.remaining


def set_allocation(state: AllocationState, choice_id: str, requested: int) -> AllocationState:
    """
    Set a choice's points, clamped into [0, cap].

    Out of range requests are not errors: a negative value becomes 0 and
    anything above the cap becomes the cap.
    """
    ceiling = cap(state, choice_id)
    new_value = max(0, min(int(requested), ceiling))
    if new_value == state[choice_id]:
        return state

    values = dict(state.values)
    values[choice_id] = new_value
    return AllocationState(values=values, budget=state.budget)


def adjust_allocation(state: AllocationState, choice_id: str, delta: int) -> AllocationState:
    """Move a choice by delta points (e.g. +/- buttons), clamped the same way"""
    if choice_id not in state:
        raise InvalidChoiceError(f"Unknown choice: {choice_id}")
    return set_allocation(state, choice_id, state[choice_id] + delta)


def is_complete(state: AllocationState) -> bool:
    """True once every point is allocated. A state without choices never completes."""
    return bool(state.values) and state.remaining == 0


def finalize(state: AllocationState, policy: CompletionPolicy = FULL) -> Dict[str, int]:
    """
    Return the submittable allocation: only choices with points > 0.

    Raises EmptyAllocationError when nothing is allocated and, under the
    ``full`` policy, NotFullyAllocatedError while points remain.
    """
    if state.total == 0:
        raise EmptyAllocationError()

    if policy == FULL and not is_complete(state):
        raise NotFullyAllocatedError(remaining=state.remaining)

    return {choice_id: points for choice_id, points in state.values.items() if points > 0}


def allocation_from_request(
    choice_ids: Iterable[str],
    requested: Mapping[str, int],
    budget: int = BUDGET
) -> AllocationState:
    """
    Build a state from a submitted ballot.

    The ballot is replayed through set_allocation. Unlike the interactive
    control, a submitted value that would be clamped is rejected.
    """
    state = initialize(choice_ids, budget)

    for choice_id, points in requested.items():
        if choice_id not in state:
            raise InvalidChoiceError(f"Choice {choice_id} does not belong to this poll")
        if points < 0:
            raise InvalidAllocationError(f"Points for {choice_id} cannot be negative")

        state = set_allocation(state, choice_id, points)

        if state[choice_id] != points:
            raise InvalidAllocationError(
                f"Allocation exceeds the budget of {budget} points"
            )

    return state


class AllocationEngine:
    """Allocation state for one voter's session on one poll"""

    def __init__(self, choice_ids: Iterable[str], budget: int = BUDGET, policy: CompletionPolicy = FULL):
        self.policy = policy
        self.state = initialize(choice_ids, budget)

    @property
    def budget(self) -> int:
        return self.state.budget

    def set(self, choice_id: str, requested: int) -> int:
        """Set a choice and return the effective (clamped) value"""
        self.state = set_allocation(self.state, choice_id, requested)
        return self.state[choice_id]

    def adjust(self, choice_id: str, delta: int) -> int:
        self.state = adjust_allocation(self.state, choice_id, delta)
        return self.state[choice_id]

    def cap(self, choice_id: str) -> int:
        return cap(self.state, choice_id)

    def remaining(self) -> int:
        return self.state.remaining

    def is_complete(self) -> bool:
        return is_complete(self.state)

    def reset(self) -> None:
        self.state = initialize(self.state.values.keys(), self.state.budget)

    def finalize(self) -> Dict[str, int]:
        return finalize(self.state, self.policy)

    def snapshot(self) -> dict:
        """Current values plus live feedback, for rendering"""
        return {
            "budget": self.state.budget,
            "allocations": dict(self.state.values),
            "remaining": self.state.remaining,
            "is_complete": self.is_complete(),
        }
