"""
SocialHub Backend: Services Layer
===================================

What:  Business logic sitting between the routes (HTTP) and the database.
How:   Each service is constructed per request with that request's
       AsyncSession (see socialhub.dependencies) and returns pydantic models.

Service Inventory:
    - IdentityService:     accounts, login, session tokens, password resets
    - SocialGraphService:  follow edges, follower lists, suggestions, profiles
    - ContentService:      posts, comments, likes, post view assembly
    - FeedService:         feed / explore / per-author post listings
    - SearchService:       user and post search, trending topics
    - Mailer:              password reset delivery interface (LoggingMailer)
    - rank_trending_topics: pure keyword ranking used by SearchService
"""

from socialhub.services.content_service import ContentService
from socialhub.services.feed_service import FeedService
from socialhub.services.identity_service import IdentityService
from socialhub.services.mailer import LoggingMailer, Mailer
from socialhub.services.search_service import SearchService
from socialhub.services.social_graph_service import SocialGraphService
from socialhub.services.trending import rank_trending_topics

__all__ = [
    "ContentService",
    "FeedService",
    "IdentityService",
    "LoggingMailer",
    "Mailer",
    "SearchService",
    "SocialGraphService",
    "rank_trending_topics",
]
