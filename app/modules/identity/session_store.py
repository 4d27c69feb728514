import logging
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)

SessionCallback = Callable[[str, Optional[Any]], None]


class _Unresolved:
    def __repr__(self) -> str:
        return "UNRESOLVED"


UNRESOLVED = _Unresolved()


class SessionStore:
    """
    Current Supabase session for one client, fed by auth state change events.

    Observers are called synchronously from inside the provider's notification, so
    they must not call back into the auth client; IdentityContext only queues work.
    """

    def __init__(self, auth: Any):
        self.auth = auth
        self._session: Any = UNRESOLVED
        self._observers: List[SessionCallback] = []
        self._subscription = None
        self._events_seen = 0

    def observe(self, callback: SessionCallback) -> Callable[[], None]:
        self._observers.append(callback)

        def unsubscribe() -> None:
            if callback in self._observers:
                self._observers.remove(callback)
        return unsubscribe

    def get_current_session(self) -> Any:
        """The session, None when signed out, or UNRESOLVED before the first check completes."""
        return self._session

    @property
    def resolved(self) -> bool:
        return self._session is not UNRESOLVED

    async def start(self) -> None:
        # Subscribe before the initial get_session so an event fired in between is not lost.
        if self._subscription is None:
            self._subscription = self.auth.on_auth_state_change(self._on_auth_state_change)

        events_before = self._events_seen
        session = await self.auth.get_session()
        if self._events_seen != events_before:
            logger.debug("Auth event arrived during initial session check; keeping pushed session")
            return
        self._apply("INITIAL_SESSION", session)

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _on_auth_state_change(self, event: Any, session: Optional[Any]) -> None:
        self._events_seen += 1
        self._apply(str(getattr(event, "value", event)), session)

    def _apply(self, event: str, session: Optional[Any]) -> None:
        self._session = session
        if session is None:
            logger.info(f"Session cleared ({event})")
        else:
            logger.debug(f"Session set for user {session.user.id} ({event})")
        for callback in list(self._observers):
            try:
                callback(event, session)
            except Exception as e:
                logger.error(f"Session observer failed on {event}: {e}")
