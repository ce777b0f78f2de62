"""
Sign Spelling - FastAPI server
Accepts per-frame classifications from a browser-side classifier and
exposes the committed text.
"""

import asyncio
import dataclasses
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel, Field, model_validator

from .alphabet import Alphabet
from .config import Cfg, ConfigError, load_config
from .executor import TextBufferExecutor, web_search_launcher
from .session import SpellingSession
from .types import Action, AppendLetter, Classification, CommitStatus

logger = logging.getLogger(__name__)


# Request/Response models
class ClassificationRequest(BaseModel):
    label: Optional[str] = None  # null means no hand detected
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0)
    timestamp_ms: Optional[float] = None

    @model_validator(mode="after")
    def require_confidence_with_label(self):
        if self.label is not None and self.confidence is None:
            raise ValueError("confidence is required when label is set")
        return self


class TickRequest(BaseModel):
    timestamp_ms: Optional[float] = None


class ConfigUpdate(BaseModel):
    confidence_threshold: Optional[float] = None
    dwell_duration_ms: Optional[int] = None


class ActionModel(BaseModel):
    kind: str
    letter: Optional[str] = None


class StatusModel(BaseModel):
    phase: str
    leading_label: Optional[str] = None
    vote_count: int
    remaining_ms: float


class ConfigModel(BaseModel):
    confidence_threshold: float
    dwell_duration_ms: int
    poll_interval_ms: int


class StepResponse(BaseModel):
    committed: Optional[ActionModel] = None
    status: StatusModel
    text: str


class StateResponse(BaseModel):
    status: StatusModel
    text: str
    config: ConfigModel


def _action_model(action: Optional[Action]) -> Optional[ActionModel]:
    if action is None:
        return None
    letter = action.letter if isinstance(action, AppendLetter) else None
    return ActionModel(kind=action.kind, letter=letter)


def _status_model(status: CommitStatus) -> StatusModel:
    return StatusModel(
        phase=status.phase.value,
        leading_label=status.leading_label,
        vote_count=status.vote_count,
        remaining_ms=status.remaining_ms,
    )


def _config_model(session: SpellingSession) -> ConfigModel:
    config = session.config
    return ConfigModel(
        confidence_threshold=config.confidence_threshold,
        dwell_duration_ms=config.dwell_duration_ms,
        poll_interval_ms=config.poll_interval_ms,
    )


def build_session(cfg: Cfg) -> SpellingSession:
    executor = TextBufferExecutor(web_search_launcher(cfg.search.url_template))
    return SpellingSession(cfg.commit, Alphabet.from_config(cfg.alphabet), executor)


def get_session(request: Request) -> SpellingSession:
    return request.app.state.session


def create_app(cfg: Optional[Cfg] = None, session: Optional[SpellingSession] = None) -> FastAPI:
    """
    Build the HTTP app around one spelling session.

    Args:
        cfg: Loaded configuration; the default config file when None
        session: Pre-built session (tests inject one with a fake clock)
    """
    cfg = cfg or load_config()
    session = session or build_session(cfg)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run the dwell timer poll for the lifetime of the app"""
        stop = asyncio.Event()
        poller = None
        if cfg.server.poll_in_background:
            logger.info("Starting timer poll every %dms", session.config.poll_interval_ms)
            poller = asyncio.create_task(session.run_poller(stop))
        try:
            yield
        finally:
            stop.set()
            if poller is not None:
                await poller
            logger.info("Timer poll stopped")

    app = FastAPI(title="Sign Spelling", lifespan=lifespan)
    app.state.session = session

    @app.post("/classifications", response_model=StepResponse)
    async def submit_classification(body: ClassificationRequest,
                                    session: SpellingSession = Depends(get_session)):
        classification = None
        if body.label is not None:
            classification = Classification(label=body.label, confidence=body.confidence)
        action = await session.submit(classification, body.timestamp_ms)
        return StepResponse(
            committed=_action_model(action),
            status=_status_model(session.status(body.timestamp_ms)),
            text=session.text,
        )

    @app.post("/tick", response_model=StepResponse)
    async def tick(body: TickRequest, session: SpellingSession = Depends(get_session)):
        action = await session.poll(body.timestamp_ms)
        return StepResponse(
            committed=_action_model(action),
            status=_status_model(session.status(body.timestamp_ms)),
            text=session.text,
        )

    @app.get("/status", response_model=StateResponse)
    async def status(session: SpellingSession = Depends(get_session)):
        return StateResponse(
            status=_status_model(session.status()),
            text=session.text,
            config=_config_model(session),
        )

    @app.post("/reset", response_model=StateResponse)
    async def reset(session: SpellingSession = Depends(get_session)):
        await session.reset()
        return StateResponse(
            status=_status_model(session.status()),
            text=session.text,
            config=_config_model(session),
        )

    @app.put("/config", response_model=ConfigModel)
    async def update_config(body: ConfigUpdate, session: SpellingSession = Depends(get_session)):
        changes = {key: value for key, value in body.model_dump().items() if value is not None}
        try:
            session.config = dataclasses.replace(session.config, **changes)
        except ConfigError as e:
            raise HTTPException(status_code=422, detail=str(e))
        return _config_model(session)

    return app
