"""
Session-scoped identity store.

IdentityContext is the single writer of an IdentitySnapshot: session + base profile +
role + role profile. Readers get immutable snapshots, either by polling `snapshot` or
by subscribing. Auth events never trigger fetches inline; they push a hydration request
onto a queue drained by a worker task, so nothing re-enters the auth client from inside
its own notification.
"""

import asyncio
import logging
from supabase import AsyncClient
from app.modules.auth.service import AuthService
from app.modules.identity.repository import IdentityRepository
from app.modules.identity.resolver import IdentityResolver
from app.modules.identity.schemas import IdentitySnapshot, Principal, SignUpRequest
from app.modules.identity.session_store import SessionStore
from typing import Any, Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

Listener = Callable[[IdentitySnapshot], None]


class IdentityContext:
    def __init__(
        self,
        session_store: SessionStore,
        resolver: IdentityResolver,
        auth_service: AuthService
    ):
        self.session_store = session_store
        self.resolver = resolver
        self.auth_service = auth_service
        self._snapshot = IdentitySnapshot()
        self._listeners: List[Listener] = []
        self._queue: "asyncio.Queue[Tuple[str, Optional[asyncio.Future]]]" = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None
        self._unobserve: Optional[Callable[[], None]] = None

    # read surface

    @property
    def snapshot(self) -> IdentitySnapshot:
        return self._snapshot

    @property
    def principal(self) -> Optional[Principal]:
        return self._snapshot.principal

    @property
    def profile(self):
        return self._snapshot.profile

    @property
    def role(self):
        return self._snapshot.role

    @property
    def role_profile(self):
        return self._snapshot.role_profile

    @property
    def loading(self) -> bool:
        return self._snapshot.loading

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    # lifecycle

    async def start(self) -> None:
        if self._worker is None:
            self._worker = asyncio.create_task(self._drain())
        if self._unobserve is None:
            self._unobserve = self.session_store.observe(self._on_session_change)
        await self.session_store.start()

    async def stop(self) -> None:
        self.session_store.stop()
        if self._unobserve is not None:
            self._unobserve()
            self._unobserve = None
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
        # Release refresh() callers whose request the worker never picked up.
        while not self._queue.empty():
            _, done = self._queue.get_nowait()
            if done is not None and not done.done():
                done.set_result(None)
            self._queue.task_done()

    # mutators

    async def refresh(self) -> None:
        """Re-run identity resolution for the current principal and wait for it."""
        principal = self._snapshot.principal
        if principal is None:
            return
        if self._worker is None or self._worker.done():
            await self._hydrate(principal.id)
            return
        done = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((principal.id, done))
        await done

    def clear(self) -> None:
        self._publish(principal=None, profile=None, role=None, role_profile=None, loading=False)

    # auth pass-throughs

    async def sign_up(self, request: SignUpRequest) -> Principal:
        try:
            return await self.auth_service.sign_up(request)
        finally:
            # The SIGNED_IN event can hydrate before the profile rows exist.
            await self.refresh()

    async def sign_in(self, email: str, password: str) -> None:
        await self.auth_service.sign_in(email, password)

    async def sign_out(self) -> None:
        try:
            await self.auth_service.sign_out()
        finally:
            self.clear()

    # internals

    def _on_session_change(self, event: str, session: Optional[Any]) -> None:
        if session is None:
            self.clear()
            return
        principal = Principal.from_session(session)
        current = self._snapshot.principal
        if current is None or current.id != principal.id:
            # A different user: drop the previous user's identity in the same update.
            self._publish(principal=principal, profile=None, role=None, role_profile=None)
        else:
            self._publish(principal=principal)
        self._queue.put_nowait((principal.id, None))

    async def _drain(self) -> None:
        while True:
            user_id, done = await self._queue.get()
            try:
                await self._hydrate(user_id)
            except Exception as e:
                logger.exception(f"Identity hydration crashed for {user_id}: {e}")
            finally:
                if done is not None and not done.done():
                    done.set_result(None)
                self._queue.task_done()

    async def _hydrate(self, user_id: str) -> None:
        identity = await self.resolver.resolve(user_id)
        principal = self._snapshot.principal
        if principal is None or principal.id != user_id:
            logger.debug(f"Discarding identity for {user_id}; session changed while resolving")
            if self._snapshot.loading:
                self._publish(loading=False)
            return
        if identity is None:
            # Transient failure: keep whatever was published before.
            self._publish(loading=False)
            return
        self._publish(
            profile=identity.profile,
            role=identity.role,
            role_profile=identity.role_profile,
            loading=False
        )

    def _publish(self, **changes) -> None:
        snapshot = self._snapshot.model_copy(update=changes)
        if snapshot == self._snapshot:
            return
        self._snapshot = snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Identity listener failed: {e}")


async def create_identity_context(supabase: AsyncClient) -> IdentityContext:
    """Build and start an IdentityContext bound to one client's auth session."""
    repository = IdentityRepository(supabase)
    context = IdentityContext(
        SessionStore(supabase.auth),
        IdentityResolver(repository),
        AuthService(supabase)
    )
    await context.start()
    return context
