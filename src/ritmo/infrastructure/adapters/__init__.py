# Infrastructure Adapters Package
from .yaml_state import YamlLearnerStateRepository

__all__ = ["YamlLearnerStateRepository"]
