"""ORM models. Importing this package registers every table with Base.metadata."""

from journal_api.models.journal import Attachment, JournalEntry
from journal_api.models.user import OAuthClient, OAuthToken, Session, User

__all__ = [
    "Attachment",
    "JournalEntry",
    "OAuthClient",
    "OAuthToken",
    "Session",
    "User",
]
