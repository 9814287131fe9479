"""Python client for the QuickAsk API."""

from quickask.client.api_client import ApiClient, format_api_error, is_valid_api_response
from quickask.client.fetcher import CachedFetcher
from quickask.client.question_client import QuestionClient

__all__ = [
    "ApiClient",
    "CachedFetcher",
    "QuestionClient",
    "format_api_error",
    "is_valid_api_response",
]
