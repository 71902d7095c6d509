"""Session state and the arrangement controller.

The controller owns the only mutable state that matters (``SessionState``)
and sequences calls to an arrangement client. One arrangement cycle is:

    Idle -> apply() -> InFlight -> Idle

A successful outcome replaces ``current_notation`` and ``last_result``
wholesale. A failed outcome leaves both untouched and is routed either to
the credential reselection hook (``AuthError``) or to a single generic
notice. Every dispatch takes a new generation number and an outcome is only
applied when its generation is still the latest one, so a slow response can
never overwrite a later arrangement or a reset.
"""

from __future__ import annotations

import inspect
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Literal, Protocol

from pydantic import BaseModel, ConfigDict

from .config import (
    INITIAL_ABC,
    ArrangementConfig,
    ArrangementResult,
    ImageSource,
    InputMode,
    SourceInput,
    TextSource,
)
from .errors import InputValidationError
from .export import ExportArtifact, build_export
from .logging_utils import log_exception
from .outcome import ArrangementErr, ArrangementOutcome
from .prompts import ArrangementRequest, build_request

_LOGGER = logging.getLogger("pianomorph.session")

GENERIC_FAILURE_MESSAGE = (
    "Failed to morph music. Ensure your image is clear or ABC notation is valid."
)

ApplyStatus = Literal["applied", "rejected", "failed", "credential_reselect", "superseded"]


class ArrangementClient(Protocol):
    async def submit(self, request: ArrangementRequest) -> ArrangementOutcome: ...


@dataclass
class SessionState:
    original_notation: str = INITIAL_ABC
    current_notation: str = ""
    last_result: ArrangementResult | None = None
    in_flight: bool = False
    input_mode: InputMode = "text"
    source_text: str = ""
    image: ImageSource | None = None
    config: ArrangementConfig = field(default_factory=ArrangementConfig)
    generation: int = 0

    def __post_init__(self) -> None:
        if not self.current_notation:
            self.current_notation = self.original_notation
        if not self.source_text:
            self.source_text = self.original_notation

    @property
    def is_morphed(self) -> bool:
        return self.last_result is not None


class SessionHooks(BaseModel):
    on_change: Callable[[SessionState], None] | None = None
    on_busy_change: Callable[[bool], None] | None = None
    on_error: Callable[[str], None] | None = None
    on_credential_reselect: Callable[[], Awaitable[Any] | None] | None = None

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
    )


class ArrangementController:
    def __init__(
        self,
        client: ArrangementClient,
        state: SessionState | None = None,
        *,
        hooks: SessionHooks | None = None,
    ) -> None:
        self._client = client
        self.state = state if state is not None else SessionState()
        self._hooks = hooks or SessionHooks()

    @property
    def hooks(self) -> SessionHooks:
        return self._hooks

    @hooks.setter
    def hooks(self, hooks: SessionHooks) -> None:
        self._hooks = hooks

    def _changed(self) -> None:
        if self._hooks.on_change is not None:
            self._hooks.on_change(self.state)

    def _set_busy(self, busy: bool) -> None:
        if self.state.in_flight == busy:
            return
        self.state.in_flight = busy
        if self._hooks.on_busy_change is not None:
            self._hooks.on_busy_change(busy)

    def select_mode(self, mode: InputMode) -> None:
        self.state.input_mode = mode
        self._changed()

    def set_source_text(self, notation: str) -> None:
        """Replace the text source; it becomes the new restore baseline."""
        self.state.source_text = notation
        self.state.original_notation = notation
        self._changed()

    def load_image(self, image: ImageSource) -> None:
        self.state.image = image
        self.state.input_mode = "image"
        self._changed()

    def clear_image(self) -> None:
        self.state.image = None
        self._changed()

    def update_config(self, **changes: Any) -> ArrangementConfig:
        self.state.config = self.state.config.with_changes(**changes)
        self._changed()
        return self.state.config

    def current_source(self) -> SourceInput | None:
        if self.state.input_mode == "image":
            return self.state.image
        return TextSource(notation=self.state.source_text)

    def can_submit(self) -> bool:
        if self.state.in_flight:
            return False
        source = self.current_source()
        if source is None:
            return False
        if isinstance(source, TextSource):
            return bool(source.notation.strip())
        return bool(source.data)

    async def apply(self) -> ApplyStatus:
        """Run one arrangement cycle against the client."""
        source = self.current_source()
        if source is None:
            _LOGGER.info("Apply rejected: image mode without a loaded image.")
            return "rejected"
        try:
            request = build_request(source, self.state.config)
        except InputValidationError as exc:
            _LOGGER.info("Apply rejected: %s", exc)
            return "rejected"

        self.state.generation += 1
        token = self.state.generation
        self._set_busy(True)
        self._changed()
        _LOGGER.info(
            "Dispatching arrangement #%d (mode=%s, difficulty=%s, style=%s, hand=%s)",
            token,
            self.state.input_mode,
            self.state.config.difficulty,
            self.state.config.style,
            self.state.config.hand_size,
        )
        try:
            outcome = await self._client.submit(request)
        except Exception as exc:
            _LOGGER.warning("Arrangement client raised unexpectedly: %s", exc, exc_info=True)
            log_exception("arrangement submit", exc)
            if token != self.state.generation:
                return "superseded"
            self._set_busy(False)
            self._changed()
            self._notify_error()
            return "failed"

        if token != self.state.generation:
            _LOGGER.info(
                "Discarding arrangement #%d; generation is now #%d.",
                token,
                self.state.generation,
            )
            return "superseded"

        self._set_busy(False)
        if isinstance(outcome, ArrangementErr):
            self._changed()
            return await self._route_error(outcome)

        self.state.current_notation = outcome.result.notation
        self.state.last_result = outcome.result
        _LOGGER.info("Arrangement #%d applied (%d chars).", token, len(outcome.result.notation))
        self._changed()
        return "applied"

    async def _route_error(self, outcome: ArrangementErr) -> ApplyStatus:
        _LOGGER.warning(
            "Arrangement failed (%s): %s",
            outcome.kind,
            outcome.message,
            exc_info=bool(os.environ.get("PIANOMORPH_DEBUG")),
        )
        if outcome.kind == "auth" and self._hooks.on_credential_reselect is not None:
            result = self._hooks.on_credential_reselect()
            if inspect.isawaitable(result):
                await result
            return "credential_reselect"
        log_exception("arrangement", outcome.error)
        self._notify_error()
        return "failed"

    def _notify_error(self) -> None:
        if self._hooks.on_error is not None:
            self._hooks.on_error(GENERIC_FAILURE_MESSAGE)

    def reset(self) -> None:
        """Restore the original notation and drop any result or image."""
        self.state.generation += 1
        self.state.current_notation = self.state.original_notation
        self.state.last_result = None
        self.state.image = None
        self._set_busy(False)
        self._changed()

    def export_artifact(self) -> ExportArtifact:
        return build_export(self.state.config.title, self.state.current_notation)

    def export(self, directory: str | Path) -> Path:
        return self.export_artifact().write(directory)
