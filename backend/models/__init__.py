"""SQLAlchemy models, re-exported."""

from models.user import AdminUser, APIKey  # noqa: F401
from models.system import SystemConfig  # noqa: F401
from models.interview import Interview, InterviewParticipant, AggregationResult  # noqa: F401
from models.conversation import InterviewSession, ChatMessage, MessageRole  # noqa: F401
