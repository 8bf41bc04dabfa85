import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from copa_api.config import configure_logging, settings_provider
from copa_api.database import init_db
from copa_api.errors import BracketError, InternalError
from copa_api.routes import bracket, public, teams, tournaments

settings = settings_provider.get()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Copa Bracket API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Admin routers (each router enforces require_admin)
app.include_router(tournaments.router, prefix="/api", tags=["tournaments"])
app.include_router(teams.router, prefix="/api", tags=["teams"])
app.include_router(bracket.router, prefix="/api", tags=["bracket"])

# Public read-only endpoints (no auth)
app.include_router(public.router, prefix="/api", tags=["public"])

_SCORE_FIELDS = {"score_a", "score_b", "penalties_a", "penalties_b"}


def _error_response(error: BracketError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content={"error": error.code, "detail": error.message})


@app.exception_handler(BracketError)
async def bracket_error_handler(request: Request, exc: BracketError):
    return _error_response(exc)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are business-rule violations (400), not 422s."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = [str(p) for p in first.get("loc", ())]
    message = f"{loc[-1]}: {first.get('msg')}" if loc else "Invalid data."
    code = "InvalidScore" if _SCORE_FIELDS.intersection(loc) else "ValidationError"
    return JSONResponse(status_code=400, content={"error": code, "detail": message})


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Unhandled data-store error on %s", request.url.path)
    return _error_response(InternalError())


@app.on_event("startup")
def on_startup():
    init_db()
    logger.info("Copa Bracket API started (database: %s)", settings.database_url.split("@")[-1])


@app.get("/api/health")
def health_check():
    return {"app_name": "Copa Bracket API", "status": "healthy"}
