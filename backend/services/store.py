"""In-memory session store. Keyed by session ID."""

from models.session import WritingSession

sessions: dict[str, WritingSession] = {}
