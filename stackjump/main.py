"""
StackJump Service - FastAPI Application
Exposes move generation, validation, previews and the state transition
for the stacking checkers-family rules engines.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel, Field

from .config import get_settings
from .errors import (
    ConfigurationError,
    GameOverError,
    InvalidMoveError,
    InvalidStateError,
    NotationError,
    SerializationError,
    StackJumpError,
)
from .game_engine import GameEngine, MovePreview
from .models import GameState, ValidationResult
from .rules.rulesets import RULESETS

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="StackJump Rules Service",
    description="Move generation and validation for stacking checkers-family games",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Most specific class first; the first isinstance match wins.
_STATUS_BY_ERROR = (
    (InvalidMoveError, 400),
    (GameOverError, 400),
    (NotationError, 400),
    (ConfigurationError, 422),
    (SerializationError, 422),
    (InvalidStateError, 500),
)


@app.exception_handler(StackJumpError)
async def stackjump_error_handler(request: Request, exc: StackJumpError) -> JSONResponse:
    status = 500
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status = code
            break
    if status >= 500:
        logger.error("Internal error on %s: %s", request.url.path, exc)
    else:
        logger.warning("Rejected request on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=status, content=exc.to_dict())


class NewGameRequest(BaseModel):
    """Request model for starting a game"""
    ruleset: Optional[str] = None
    variants: List[str] = Field(default_factory=list)


class MovesRequest(BaseModel):
    """Request model for listing legal moves"""
    state: GameState
    player: Optional[int] = Field(None, ge=1, le=2)


class MovesResponse(BaseModel):
    """Response model for listing legal moves"""
    player: int
    moves: List[str]


class MoveRequest(BaseModel):
    """Request model for validating, previewing or applying a move"""
    state: GameState
    move: str = ""


@app.get("/health")
async def health() -> Dict[str, Any]:
    return {"status": "healthy", "rulesets": sorted(RULESETS)}


@app.get("/rulesets")
async def list_rulesets() -> List[Dict[str, Any]]:
    return [
        ruleset.model_dump(by_alias=True, exclude={"opening"}) | {
            "hasOpening": ruleset.opening is not None,
        }
        for ruleset in RULESETS.values()
    ]


@app.post("/games", response_model=GameState, response_model_by_alias=True)
async def new_game(request: NewGameRequest) -> GameState:
    ruleset = request.ruleset or settings.default_ruleset
    state = GameEngine.new_game(ruleset, variants=request.variants)
    logger.info("New %s game", state.game)
    return state


@app.post("/moves", response_model=MovesResponse)
async def get_moves(request: MovesRequest) -> MovesResponse:
    player = request.player or request.state.current_player
    return MovesResponse(
        player=player,
        moves=GameEngine.get_valid_moves(request.state, player),
    )


@app.post("/validate", response_model=ValidationResult, response_model_by_alias=True)
async def validate_move(request: MoveRequest) -> ValidationResult:
    return GameEngine.validate_move(request.state, request.move)


@app.post("/preview", response_model=MovePreview, response_model_by_alias=True)
async def preview_move(request: MoveRequest) -> MovePreview:
    return GameEngine.preview_move(request.state, request.move)


@app.post("/move", response_model=GameState, response_model_by_alias=True)
async def apply_move(request: MoveRequest) -> GameState:
    return GameEngine.apply_move(request.state, request.move)


@app.get("/metrics")
async def metrics() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


if __name__ == "__main__":
    import uvicorn

    # `python -m stackjump.main` binds to all interfaces on STACKJUMP_PORT.
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
