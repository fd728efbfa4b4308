from abc import ABC, abstractmethod


class ChatResponderPort(ABC):
    @abstractmethod
    def respond(self, message: str, session_id: str) -> str:
        """
        Answer a general (non-booking) message.

        Raises:
            LLMUpstreamError: provider failure; callers fall back to a canned reply.
        """
        raise NotImplementedError
