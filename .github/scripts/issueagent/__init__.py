# issueagent - GitHub issue assistant
# Re-exports for convenient imports from the issueagent package
__version__ = "0.1.0"

from .decision import ResponseDecision, ResponseDecisionEngine, ResponseDecisionResult  # noqa: E402,F401
from .history import SIGNATURE_MARKER, ConversationHistoryBuilder  # noqa: E402,F401
from .models import CommentSnapshot, ConversationMessage, IssueSnapshot, MessageRole  # noqa: E402,F401
from .models import IssueContextRequest, IssueContextResult, IssueContextStatus  # noqa: E402,F401
from .models import IssueEventType  # noqa: E402,F401
from .response_generator import AgentResponseGenerator  # noqa: E402,F401
