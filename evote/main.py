# main.py
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database
from pymongo.errors import PyMongoError
from slowapi.errors import RateLimitExceeded

from evote import config
from evote.database.connection import MongoConnector, ensure_indexes, get_database
from evote.dependencies import get_db
from evote.errors import ElectionError
from evote.rate_limit import limiter, rate_limit_exceeded_handler
from evote.routes.admin_routes import admin_router
from evote.routes.auth_routes import auth_router
from evote.routes.election_routes import router as election_router
from evote.routes.vote_routes import vote_router

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        ensure_indexes(get_database())
    except PyMongoError as e:
        logger.error(f"Failed to prepare MongoDB indexes: {e}")
        raise
    yield
    MongoConnector.reset()


app = FastAPI(title="evote - Online Election API", lifespan=lifespan)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ElectionError)
async def election_error_handler(request: Request, exc: ElectionError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [{"loc": list(e["loc"]), "msg": e["msg"]} for e in exc.errors()]
    return JSONResponse(status_code=400, content={"message": "Invalid request", "errors": errors})


app.include_router(auth_router)
app.include_router(admin_router)
app.include_router(election_router)
app.include_router(vote_router)


@app.get("/health", tags=["Health"])
def health_check(db: Database = Depends(get_db)):
    try:
        db.command("ping")
        state = "connected"
    except PyMongoError as e:
        logger.warning(f"Health check could not reach MongoDB: {e}")
        state = "not_connected"
    return {"status": "ok", "db": state}


@app.get("/", tags=["Root"])
def read_root():
    return {"message": "Welcome to the evote API"}
