"""
Page objects for the Wikipedia Android app.
"""

from .article import ArticlePage
from .onboarding import OnboardingPage
from .search import SearchPage

__all__ = ["ArticlePage", "OnboardingPage", "SearchPage"]
