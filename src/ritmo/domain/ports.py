"""
Ports (interfaces) for learner state persistence.

The engine never reads or writes storage itself; hosts load a LearnerState
through one of these, run the engine, then save it back.
"""

from abc import ABC, abstractmethod

from .state import LearnerState


class LearnerStateRepository(ABC):
    """
    Port for loading and saving a learner's state.

    Implementations:
        - YamlLearnerStateRepository: One YAML file per learner.
    """

    @abstractmethod
    def load(self) -> LearnerState:
        """
        Load the full learner state.

        Raises:
            FileNotFoundError: If no state has been stored yet.
        """
        pass

    @abstractmethod
    def save(self, state: LearnerState) -> None:
        """Persist the full learner state, replacing what was stored."""
        pass

    @abstractmethod
    def exists(self) -> bool:
        pass
