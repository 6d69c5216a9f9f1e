from .browser import BrowserSession, SessionState
from .extractor import ProfileExtractor
from .graphql import GraphQLBridge
from .retry import with_retry

__all__ = ["BrowserSession", "GraphQLBridge", "ProfileExtractor", "SessionState", "with_retry"]
