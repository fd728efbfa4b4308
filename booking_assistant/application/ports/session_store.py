from abc import ABC, abstractmethod

from booking_assistant.domain.entities.session import Session


class SessionStorePort(ABC):
    @abstractmethod
    def get(self, session_id: str) -> Session:
        """
        Return the stored session, or a new unsaved START session for an unseen
        (or expired) id.

        Raises:
            StoreUnavailableError: storage cannot be read. Prior progress is
            never replaced by an empty session silently.
        """
        raise NotImplementedError

    @abstractmethod
    def save(self, session: Session) -> None:
        """Persist the session. Raises StoreUnavailableError on write failure."""
        raise NotImplementedError

    @abstractmethod
    def reset(self, session_id: str) -> Session:
        """Explicit restart: store and return a fresh START session."""
        raise NotImplementedError
