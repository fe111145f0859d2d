"""
LLM Provider Interface - Abstract base for AI service providers.

This module defines the interface the semantic matchers depend on
(OpenAI, Ollama or any OpenAI-compatible endpoint).
"""
from abc import ABC, abstractmethod
from typing import List, Optional


class LLMProvider(ABC):
    """
    Abstract Interface for AI Service Providers.
    """

    @abstractmethod
    def generate_embedding(self, text: str) -> List[float]:
        """
        Generate a vector embedding for the given text.
        """
        pass

    @abstractmethod
    def judge_similarity(self, text_a: str, text_b: str, context: Optional[str] = None) -> float:
        """
        Rate how semantically equivalent two texts are.

        Returns a similarity in [0.0, 1.0].
        """
        pass
