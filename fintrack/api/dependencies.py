"""Dependency injection for FastAPI endpoints"""

from typing import Optional
from fastapi import Depends, Request
from fintrack.config import settings
from fintrack.infrastructure.clients.gemini import GeminiClient
from fintrack.infrastructure.datasets.loader import DatasetPatternStore


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_dataset_store(request: Request) -> DatasetPatternStore:
    """Provide the process-wide dataset pattern cache"""
    return request.app.state.dataset_store


def get_llm_api_key() -> Optional[str]:
    """Gemini API key, or None when LLM analysis is not configured"""
    return settings.gemini_api_key or None


def get_llm_client(api_key: Optional[str] = Depends(get_llm_api_key)) -> Optional[GeminiClient]:
    """Provide Gemini client instance when a key is configured"""
    return GeminiClient(api_key=api_key) if api_key else None
