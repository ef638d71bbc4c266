"""
In-memory conversation storage keyed by user, session and agent.
"""

import threading
from typing import Dict, List, Optional, Tuple

from ..models import ConversationMessage, ParticipantRole
from ..utils import get_logger


class InMemoryChatStorage:
    """
    Thread-safe chat history store.

    Each (user_id, session_id, agent_id) triple holds its own history.
    Consecutive messages with the same role are dropped so that every
    history alternates user and assistant turns.
    """

    def __init__(self):
        self.logger = get_logger(__name__)
        self._conversations: Dict[Tuple[str, str, str], List[ConversationMessage]] = {}
        self._lock = threading.Lock()

    def save_chat_message(self, user_id: str, session_id: str, agent_id: str,
                          new_message: ConversationMessage,
                          max_history_size: Optional[int] = None) -> List[ConversationMessage]:
        """
        Append a message to an agent's history.

        Args:
            max_history_size: Keep at most this many of the newest messages

        Returns:
            The agent's history after the update
        """
        key = (user_id, session_id, agent_id)
        with self._lock:
            conversation = self._conversations.setdefault(key, [])

            if conversation and conversation[-1].role == new_message.role:
                self.logger.debug(f"Consecutive {new_message.role} message for {agent_id} ignored")
                return list(conversation)

            conversation.append(new_message)
            if max_history_size is not None:
                # Whole user/assistant pairs, at least one
                max_history_size = max(2, max_history_size - max_history_size % 2)
                if len(conversation) > max_history_size:
                    del conversation[:len(conversation) - max_history_size]
                    # A history never opens with an assistant turn
                    while conversation and conversation[0].role != ParticipantRole.USER.value:
                        del conversation[0]
            return list(conversation)

    def fetch_chat(self, user_id: str, session_id: str, agent_id: str,
                   max_history_size: Optional[int] = None) -> List[ConversationMessage]:
        with self._lock:
            conversation = list(self._conversations.get((user_id, session_id, agent_id), []))
        if max_history_size is not None and len(conversation) > max_history_size:
            conversation = conversation[-max_history_size:]
        return conversation

    def fetch_all_chats(self, user_id: str, session_id: str) -> List[ConversationMessage]:
        """
        Merge every agent's history for a session in timestamp order.

        Assistant messages are prefixed with ``[agent_id]`` so the
        classifier can tell which agent answered last.
        """
        merged: List[ConversationMessage] = []
        with self._lock:
            for (stored_user, stored_session, agent_id), messages in self._conversations.items():
                if stored_user != user_id or stored_session != session_id:
                    continue
                for message in messages:
                    if message.role == ParticipantRole.ASSISTANT.value:
                        content = [{"text": f"[{agent_id}] {item.get('text', '')}"} for item in message.content]
                    else:
                        content = [dict(item) for item in message.content]
                    merged.append(ConversationMessage(
                        role=message.role, content=content, timestamp=message.timestamp
                    ))

        merged.sort(key=lambda message: message.timestamp)
        return merged

    def clear_session(self, user_id: str, session_id: str) -> None:
        with self._lock:
            for key in [k for k in self._conversations if k[0] == user_id and k[1] == session_id]:
                del self._conversations[key]
        self.logger.info(f"Cleared chat history for session {session_id}")
