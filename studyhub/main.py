from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from studyhub.model import users, quizzes, questions, attempts, responses, user_progress, labs, lab_attempts
from studyhub.router import (
    quizzes_router,
    labs_router,
    users_router,
)
from studyhub.config import settings
from studyhub.database.db import lifespan
from studyhub.exceptions import AppException, InvalidInputException, StoreFailureException
from studyhub.log import get_logger

log = get_logger(__name__)

app = FastAPI(
    lifespan=lifespan,
    title=settings.PROJECT_NAME,
    version=settings.API_VERSION
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        settings.FRONTEND_URL,
        "http://localhost:3000",  # For local development
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(quizzes_router, prefix="/quizzes", tags=["Quizzes"])
app.include_router(labs_router, prefix="/labs", tags=["Labs"])
app.include_router(users_router, prefix="/users", tags=["Users"])


##########################
### Exception handlers ###
##########################
def _error_response(exc: AppException) -> JSONResponse:
    body = {"error": exc.message}
    if exc.details:
        body["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    if exc.status_code >= 500:
        log.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.details)
    return _error_response(exc)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return _error_response(InvalidInputException("Invalid request", details=details))


@app.exception_handler(SQLAlchemyError)
async def store_exception_handler(request: Request, exc: SQLAlchemyError):
    log.exception("Store failure on %s %s", request.method, request.url.path)
    return _error_response(StoreFailureException("Service failure", details=str(exc)))


#####################
### Root Endpoint ###
#####################
@app.get("/")
def read_root():
    return {"name": settings.PROJECT_NAME, "environment": settings.ENV, "version": settings.API_VERSION, "docs": "/docs"}
