"""
workflow.py — the per-user capture → analyse → edit → export state machine.

    EMPTY ──select──▶ SELECTED ──analyze──▶ ANALYZING ──succeed──▶ RESULT
                          ▲                     │                  (viewing ⇄ editing)
                          │                     └──fail──▶ FAILED ──analyze──▶ ANALYZING
    select from any phase → SELECTED      reset from any phase → EMPTY

Phase changes go through the pure `transition()` table. The controller owns
the session record and a generation counter: every select/reset bumps it, and
an analysis result is applied only if the generation it started under is
still current.
"""
from __future__ import annotations

import enum
import logging
from typing import Optional

from analysis_client import AnalysisClient, AnalysisError
from exporter import Exporter, ShareOutcome
from image_source import ImageSource, SelectedImage
from order_record import FIELDS, OrderRecord

logger = logging.getLogger(__name__)


class Phase(str, enum.Enum):
    EMPTY     = "empty"
    SELECTED  = "selected"
    ANALYZING = "analyzing"
    RESULT    = "result"
    FAILED    = "failed"


class Event(str, enum.Enum):
    SELECT  = "select"
    RESET   = "reset"
    ANALYZE = "analyze"
    SUCCEED = "succeed"
    FAIL    = "fail"


class InvalidTransition(Exception):
    def __init__(self, phase: Phase, event: Event) -> None:
        super().__init__(f"{event.value} is not allowed in phase {phase.value}")
        self.phase = phase
        self.event = event


_TRANSITIONS: dict[tuple[Phase, Event], Phase] = {
    **{(p, Event.SELECT): Phase.SELECTED for p in Phase},
    **{(p, Event.RESET): Phase.EMPTY for p in Phase},
    (Phase.SELECTED,  Event.ANALYZE): Phase.ANALYZING,
    (Phase.FAILED,    Event.ANALYZE): Phase.ANALYZING,
    (Phase.ANALYZING, Event.SUCCEED): Phase.RESULT,
    (Phase.ANALYZING, Event.FAIL):    Phase.FAILED,
}


def transition(phase: Phase, event: Event) -> Phase:
    try:
        return _TRANSITIONS[(phase, event)]
    except KeyError:
        raise InvalidTransition(phase, event) from None


class WorkflowController:

    def __init__(
        self,
        client: AnalysisClient,
        exporter: Exporter,
        source: Optional[ImageSource] = None,
    ) -> None:
        self._client   = client
        self._exporter = exporter
        self.source    = source or ImageSource()

        self.phase: Phase                   = Phase.EMPTY
        self.record: Optional[OrderRecord]  = None
        self.error: Optional[str]           = None
        self.editing: bool                  = False
        self.armed_field: Optional[str]     = None   # field awaiting its new value
        self.generation: int                = 0

    @property
    def image(self) -> Optional[SelectedImage]:
        return self.source.image

    # ── Selection ─────────────────────────────────────────────────────────────

    def select(self, image: SelectedImage, dropped: bool = False) -> bool:
        """Take a new image, discarding any record or error. False if rejected."""
        if not self.source.select(image, dropped=dropped):
            return False
        self._enter(Event.SELECT)
        return True

    def reset(self) -> None:
        self.source.reset()
        self._enter(Event.RESET)

    def _enter(self, event: Event) -> None:
        self.phase       = transition(self.phase, event)
        self.generation += 1
        self.record      = None
        self.error       = None
        self.editing     = False
        self.armed_field = None

    # ── Analysis ──────────────────────────────────────────────────────────────

    async def analyze(self) -> bool:
        """
        Run one analysis of the stored image.
        Returns True when the outcome was applied to this session.
        """
        try:
            self.phase = transition(self.phase, Event.ANALYZE)
        except InvalidTransition as exc:
            logger.debug("Ignoring analyze: %s", exc)
            return False

        started_in = self.generation
        self.error = None

        try:
            record = await self._client.analyze(self.source.image)
        except AnalysisError as exc:
            if self.generation != started_in:
                logger.info("Discarding stale analysis failure (generation %d)", started_in)
                return False
            self.error = exc.message
            self.phase = transition(self.phase, Event.FAIL)
            return True

        if self.generation != started_in:
            logger.info("Discarding stale analysis result (generation %d)", started_in)
            return False
        self.record  = record
        self.editing = False
        self.phase   = transition(self.phase, Event.SUCCEED)
        return True

    # ── Editing ───────────────────────────────────────────────────────────────

    def toggle_edit(self) -> bool:
        """Viewing ⇄ editing. Saving accepts every edit as typed."""
        if self.phase is not Phase.RESULT:
            return False
        self.editing     = not self.editing
        self.armed_field = None
        return True

    def arm_field(self, name: str) -> bool:
        if not self.editing or name not in FIELDS:
            return False
        self.armed_field = name
        return True

    def edit(self, name: str, value: str) -> bool:
        """Write *value* straight into the record (no staging, no undo)."""
        if not self.editing or self.record is None:
            return False
        self.record.set_field(name, value)
        self.armed_field = None
        return True

    # ── Export ────────────────────────────────────────────────────────────────

    async def copy_text(self) -> bool:
        if self.phase is not Phase.RESULT or self.record is None:
            return False
        return await self._exporter.copy_text(self.record)

    async def share(self) -> Optional[ShareOutcome]:
        if self.phase is not Phase.RESULT or self.record is None:
            return None
        return await self._exporter.share(self.record, self.source.image)
