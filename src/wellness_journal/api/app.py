"""FastAPI application factory."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from uuid import UUID

from fastapi import Depends, FastAPI, Header, Request, status
from fastapi.responses import JSONResponse

from wellness_journal.api.models import (
    AIProxyRequest,
    EntryCreateRequest,
    EntryUpdateRequest,
    MessageRequest,
    ProfileUpdateRequest,
)
from wellness_journal.app_logging import configure_logging
from wellness_journal.config import parse_allowed_user_ids
from wellness_journal.containers import AppContainer
from wellness_journal.domain.conversation import ChatMessage, TurnOutcome
from wellness_journal.domain.entries import Entry, EntryDraft
from wellness_journal.errors import (
    EntryNotFoundError,
    ServiceUnavailable,
    SessionBusyError,
    SessionNotFoundError,
    StoreError,
    UnauthenticatedError,
    ValidationError,
)
from wellness_journal.services.profiles import resolve_timezone


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)
    allowed_user_ids = parse_allowed_user_ids(container.settings.allowed_user_ids)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    def require_user(x_user_id: str | None = Header(default=None)) -> UUID:
        """Resolve the calling user from the ``X-User-Id`` header."""
        if not x_user_id:
            raise UnauthenticatedError("Missing X-User-Id header")
        try:
            user_id = UUID(x_user_id)
        except ValueError as exc:
            raise UnauthenticatedError("Malformed X-User-Id header") from exc
        if allowed_user_ids is not None and user_id not in allowed_user_ids:
            raise UnauthenticatedError("User is not allowed")
        return user_id

    @app.exception_handler(ValidationError)
    async def handle_validation_error(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=_validation_status(exc), content={"error": str(exc)}
        )

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError) -> JSONResponse:
        logger.error(
            "Record store operation failed",
            exc_info=exc,
            extra={"path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={
                "error": _format_error(
                    container, exc, "Couldn't save your data. Please try again."
                )
            },
        )

    @app.exception_handler(ServiceUnavailable)
    async def handle_service_unavailable(
        request: Request, exc: ServiceUnavailable
    ) -> JSONResponse:
        logger.warning(
            "Extraction service unavailable", extra={"path": request.url.path}
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "error": _format_error(
                    container, exc, "The assistant is temporarily unavailable."
                )
            },
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/api/ai")
    async def ai_proxy(payload: AIProxyRequest, request: Request) -> dict[str, str]:
        """Forward a prompt and messages to the language model."""
        state_container: AppContainer = request.app.state.container
        if payload.messages:
            messages = [
                ChatMessage(role=message.role, content=message.content)
                for message in payload.messages
            ]
        elif payload.user_message:
            messages = [ChatMessage(role="user", content=payload.user_message)]
        else:
            raise ValidationError("Either messages or userMessage is required")
        content = await state_container.proxy_client.complete(
            system_prompt=payload.system_prompt, messages=messages
        )
        return {"content": content}

    @app.post("/sessions", status_code=status.HTTP_201_CREATED)
    async def open_session(
        request: Request, user_id: UUID = Depends(require_user)
    ) -> dict[str, object]:
        """Open a conversation session."""
        state_container: AppContainer = request.app.state.container
        session = await state_container.conversation_service.open_session(user_id)
        return {
            "session_id": str(session.id),
            "state": session.state,
            "language": session.language,
        }

    @app.post("/sessions/{session_id}/messages")
    async def send_message(
        session_id: UUID,
        payload: MessageRequest,
        request: Request,
        user_id: UUID = Depends(require_user),
    ) -> dict[str, object]:
        """Send an utterance through one extraction round."""
        state_container: AppContainer = request.app.state.container
        session = state_container.conversation_service.get_session(session_id, user_id)
        outcome = await session.send(payload.text)
        return _turn_payload(outcome)

    @app.post("/sessions/{session_id}/confirm")
    async def confirm_session(
        session_id: UUID, request: Request, user_id: UUID = Depends(require_user)
    ) -> dict[str, object]:
        """Persist the staged drafts."""
        state_container: AppContainer = request.app.state.container
        session = state_container.conversation_service.get_session(session_id, user_id)
        committed = await session.confirm()
        return {
            "state": session.state,
            "committed": [_entry_payload(entry) for entry in committed],
        }

    @app.post("/sessions/{session_id}/cancel")
    async def cancel_session(
        session_id: UUID, request: Request, user_id: UUID = Depends(require_user)
    ) -> dict[str, object]:
        """Discard the staged drafts."""
        state_container: AppContainer = request.app.state.container
        session = state_container.conversation_service.get_session(session_id, user_id)
        session.cancel()
        return {"state": session.state}

    @app.delete("/sessions/{session_id}")
    async def close_session(
        session_id: UUID, request: Request, user_id: UUID = Depends(require_user)
    ) -> dict[str, str]:
        """Forget a session."""
        state_container: AppContainer = request.app.state.container
        state_container.conversation_service.close_session(session_id, user_id)
        return {"status": "ok"}

    @app.get("/entries")
    def list_entries(
        request: Request, limit: int = 50, user_id: UUID = Depends(require_user)
    ) -> dict[str, object]:
        """Return recent entries, newest first."""
        state_container: AppContainer = request.app.state.container
        entries = state_container.entry_service.list_recent(user_id, limit)
        return {"entries": [_entry_payload(entry) for entry in entries]}

    @app.post("/entries", status_code=status.HTTP_201_CREATED)
    def create_entry(
        payload: EntryCreateRequest,
        request: Request,
        user_id: UUID = Depends(require_user),
    ) -> dict[str, object]:
        """Add an entry manually."""
        state_container: AppContainer = request.app.state.container
        entry = state_container.entry_service.create(
            user_id, payload.type, payload.content, payload.fields
        )
        return _entry_payload(entry)

    @app.patch("/entries/{entry_id}")
    async def update_entry(
        entry_id: UUID,
        payload: EntryUpdateRequest,
        request: Request,
        user_id: UUID = Depends(require_user),
    ) -> dict[str, object]:
        """Rewrite an entry, optionally re-extracting its fields."""
        state_container: AppContainer = request.app.state.container
        entry_service = state_container.entry_service
        current = await asyncio.to_thread(entry_service.get, user_id, entry_id)
        fields = payload.fields if payload.fields is not None else current.fields
        if payload.reextract:
            profile = await asyncio.to_thread(
                state_container.profile_service.get, user_id
            )
            try:
                extracted = await state_container.extraction_service.reextract(
                    payload.content,
                    current.type,
                    language=profile.language,
                    now=datetime.now(tz=resolve_timezone(profile.timezone)),
                )
            except ServiceUnavailable:
                # The edited text is saved with the previous fields.
                logger.warning(
                    "Re-extraction failed, keeping previous fields",
                    exc_info=True,
                    extra={"entry_id": str(entry_id)},
                )
                extracted = None
            if extracted is not None:
                fields = extracted
        entry = await asyncio.to_thread(
            entry_service.update, user_id, entry_id, payload.content, fields
        )
        return _entry_payload(entry)

    @app.delete("/entries/{entry_id}")
    def delete_entry(
        entry_id: UUID, request: Request, user_id: UUID = Depends(require_user)
    ) -> dict[str, str]:
        """Delete an entry."""
        state_container: AppContainer = request.app.state.container
        state_container.entry_service.delete(user_id, entry_id)
        return {"status": "ok"}

    @app.get("/profile")
    def get_profile(
        request: Request, user_id: UUID = Depends(require_user)
    ) -> dict[str, object]:
        """Return the user's profile."""
        state_container: AppContainer = request.app.state.container
        profile = state_container.profile_service.get(user_id)
        return {"profile": profile}

    @app.put("/profile")
    def save_profile(
        payload: ProfileUpdateRequest,
        request: Request,
        user_id: UUID = Depends(require_user),
    ) -> dict[str, object]:
        """Save a partial profile update and recompute TDEE."""
        state_container: AppContainer = request.app.state.container
        changes = payload.model_dump(exclude_unset=True)
        for key in ("language", "timezone"):
            if changes.get(key, "") is None:
                changes.pop(key)
        profile = state_container.profile_service.save(user_id, changes)
        return {"profile": profile}

    @app.get("/stats/today")
    def stats_today(
        request: Request, user_id: UUID = Depends(require_user)
    ) -> dict[str, object]:
        """Return today's summary and calorie balance."""
        state_container: AppContainer = request.app.state.container
        return {"today": state_container.stats_service.get_today(user_id)}

    @app.get("/stats/{period}")
    def stats_period(
        period: str, request: Request, user_id: UUID = Depends(require_user)
    ) -> dict[str, object]:
        """Return week, month or all-time aggregates."""
        state_container: AppContainer = request.app.state.container
        return {"summary": state_container.stats_service.get_period(user_id, period)}

    @app.get("/insights")
    def insights(
        request: Request, user_id: UUID = Depends(require_user)
    ) -> dict[str, object]:
        """Return type counts and daily activity for the last week."""
        state_container: AppContainer = request.app.state.container
        return {"insights": state_container.stats_service.get_insights(user_id)}

    @app.post("/suggestions")
    async def suggestions(
        request: Request, user_id: UUID = Depends(require_user)
    ) -> dict[str, object]:
        """Generate weekly fitness and diet advice."""
        state_container: AppContainer = request.app.state.container
        suggestion = await state_container.suggestion_service.generate(user_id)
        return {"suggestion": suggestion}

    return app


def _validation_status(exc: ValidationError) -> int:
    """Map local validation failures to HTTP status codes."""
    if isinstance(exc, UnauthenticatedError):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, SessionBusyError):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, SessionNotFoundError | EntryNotFoundError):
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_400_BAD_REQUEST


def _format_error(state_container: AppContainer, exc: Exception, fallback: str) -> str:
    """Return a user-facing error message with local debug info."""
    if state_container.settings.environment == "local":
        detail = f"{type(exc).__name__}: {exc}".strip()
        if detail:
            return f"{fallback} (debug: {detail})"
    return fallback


def _draft_payload(draft: EntryDraft) -> dict[str, object]:
    return {"type": draft.type, "content": draft.content, "fields": draft.fields}


def _entry_payload(entry: Entry) -> dict[str, object]:
    return {
        "id": str(entry.id),
        "type": entry.type,
        "content": entry.content,
        "fields": entry.fields,
        "created_at": entry.created_at.isoformat(),
    }


def _turn_payload(outcome: TurnOutcome) -> dict[str, object]:
    return {
        "reply": outcome.reply,
        "state": outcome.state,
        "drafts": [_draft_payload(draft) for draft in outcome.drafts],
        "committed": [_entry_payload(entry) for entry in outcome.committed],
        "service_error": outcome.service_error,
    }
