from abc import ABC, abstractmethod
from typing import Generic, TypeVar

T = TypeVar("T")


class ObservationFunction(ABC, Generic[T]):
    """
    Extracts an observation of type T from a solver handle.

    Environments call `reset` once on the initial state of every episode, then
    `obtain_observation` at every decision point. Implementations may read the
    solver state in any way (caching, scaling...) but must not change it in a
    way that affects the search.
    """

    def reset(self, initial_state) -> None:
        """Called at the beginning of every episode. Does nothing by default."""

    @abstractmethod
    def obtain_observation(self, state) -> T:
        ...
