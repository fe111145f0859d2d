"""LLM Module - Provider interface and OpenAI implementation."""
from core.llm.interfaces import LLMProvider
from core.llm.openai_service import OpenAIService

__all__ = ['LLMProvider', 'OpenAIService']
