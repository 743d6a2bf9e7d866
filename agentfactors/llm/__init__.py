from .base import LLM, LLMRequest
from .dummy import DummyLLM
from .ollama import OllamaCLI, has_ollama, make_llm

__all__ = ["LLM", "LLMRequest", "DummyLLM", "OllamaCLI", "has_ollama", "make_llm"]
