"""Claude Code agent transport."""

from ccdiscord.providers.claude_transport import ClaudeTransport, QueryOptions

__all__ = ["ClaudeTransport", "QueryOptions"]
