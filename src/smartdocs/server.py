"""
FastAPI server for the SmartDocs API.

Users are identified by the ``X-User-Id`` header. Service objects are built
once at startup and reached through ``app.state.services``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Annotated

from fastapi import Depends, FastAPI, File, Header, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .errors import (
    AnswerGenerationError,
    ConfigurationError,
    DocumentNotFound,
    DuplicateUser,
    QuotaExceeded,
    SearchUnavailable,
    SmartDocsError,
    UnsupportedFileType,
    UserNotFound,
)
from .models import ChatMessage, Document, Plan, User
from .services import Services, build_services


logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

_ERROR_STATUS: list[tuple[type[SmartDocsError], int]] = [
    (DocumentNotFound, 404),
    (UserNotFound, 404),
    (DuplicateUser, 409),
    (QuotaExceeded, 413),
    (UnsupportedFileType, 415),
    (SearchUnavailable, 503),
    (AnswerGenerationError, 503),
]


def _error_response(exc: Exception) -> JSONResponse:
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return JSONResponse(
                {"error": error_type.__name__, "message": str(exc)},
                status_code=status_code,
            )
    logger.error(f"Unhandled error: {exc}")
    return JSONResponse(
        {"error": "Internal Server Error", "message": str(exc)}, status_code=500
    )


class CreateUserRequest(BaseModel):
    """Request model for user registration."""

    email: str
    name: str
    plan: Plan = "free"
    id: str | None = None


class SearchRequest(BaseModel):
    """Request model for semantic search."""

    query: str
    limit: int | None = Field(default=None, ge=1, le=50)
    min_score: float | None = None


class ChatRequest(BaseModel):
    """Request model for question answering."""

    message: str
    document_ids: list[str] | None = None
    conversation_history: list[ChatMessage] = Field(default_factory=list)
    limit: int | None = Field(default=None, ge=1, le=50)


def _document_view(document: Document) -> dict:
    """Serialize a document without its embedding vector."""
    return document.model_dump(mode="json", exclude={"embedding"})


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_user_id(x_user_id: Annotated[str | None, Header()] = None) -> str | None:
    return x_user_id.strip() if x_user_id and x_user_id.strip() else None


ServicesDep = Annotated[Services, Depends(get_services)]
UserIdDep = Annotated[str | None, Depends(get_user_id)]


def _missing_user() -> JSONResponse:
    return JSONResponse(
        {"error": "Unauthorized", "message": "Missing X-User-Id header"},
        status_code=401,
    )


def create_app(services: Services | None = None) -> FastAPI:
    """Build the FastAPI application around a set of services."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = services is None
        if owned:
            try:
                app.state.services = build_services()
            except ConfigurationError as exc:
                logger.error(f"Cannot start SmartDocs API: {exc}")
                raise
        yield
        if owned:
            app.state.services.close()

    app = FastAPI(
        title="SmartDocs AI",
        description="Multi-user document storage with semantic search",
        version=API_VERSION,
        lifespan=lifespan,
    )
    if services is not None:
        app.state.services = services

    frontend_url = services.settings.frontend_url if services else "http://localhost:5173"
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(f"{request.method} {request.url.path}")
        return await call_next(request)

    @app.get("/health")
    async def health():
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/api")
    async def api_info():
        return {
            "message": "SmartDocs AI API",
            "version": API_VERSION,
            "description": "Multi-user intelligent document storage with semantic search",
            "endpoints": {
                "health": "/health",
                "users": "/api/users",
                "documents": "/api/documents",
                "upload": "/api/documents/upload",
                "search": "/api/search",
                "chat": "/api/chat",
            },
        }

    @app.post("/api/users", status_code=201)
    async def create_user(request: CreateUserRequest, svc: ServicesDep):
        try:
            fields = request.model_dump(exclude_none=True)
            user = svc.store.create_user(User(**fields))
            return user.model_dump(mode="json")
        except SmartDocsError as exc:
            return _error_response(exc)

    @app.get("/api/users/{user_id}")
    async def get_user(user_id: str, svc: ServicesDep):
        user = svc.store.get_user(user_id)
        if user is None:
            return _error_response(UserNotFound(f"User {user_id} not found"))
        return user.model_dump(mode="json")

    @app.post("/api/documents/upload", status_code=201)
    async def upload_document(
        svc: ServicesDep,
        user_id: UserIdDep,
        file: UploadFile = File(...),
    ):
        """Store a file, then summarize and embed it before responding."""
        if user_id is None:
            return _missing_user()
        data = await file.read()
        file_name = file.filename or "upload"
        try:
            document = svc.processor.upload(user_id, file_name, data)
            document = await svc.processor.process(document)
        except SmartDocsError as exc:
            return _error_response(exc)
        except ValueError as exc:
            return JSONResponse(
                {"error": "Bad Request", "message": str(exc)}, status_code=400
            )
        return {"success": document.error is None, "document": _document_view(document)}

    @app.get("/api/documents")
    async def list_documents(svc: ServicesDep, user_id: UserIdDep):
        if user_id is None:
            return _missing_user()
        documents = svc.store.list_user_documents(user_id)
        return {"documents": [_document_view(doc) for doc in documents]}

    @app.get("/api/documents/search")
    async def keyword_search(q: str, svc: ServicesDep, user_id: UserIdDep):
        """Case-insensitive match over file names and summaries."""
        if user_id is None:
            return _missing_user()
        documents = svc.store.search_documents(user_id, q)
        return {"documents": [_document_view(doc) for doc in documents]}

    @app.get("/api/documents/{document_id}")
    async def get_document(document_id: str, svc: ServicesDep, user_id: UserIdDep):
        if user_id is None:
            return _missing_user()
        document = svc.store.get_document(document_id, user_id)
        if document is None:
            return _error_response(DocumentNotFound(f"Document {document_id} not found"))
        return _document_view(document)

    @app.delete("/api/documents/{document_id}")
    async def delete_document(document_id: str, svc: ServicesDep, user_id: UserIdDep):
        if user_id is None:
            return _missing_user()
        try:
            svc.processor.delete(user_id, document_id)
        except SmartDocsError as exc:
            return _error_response(exc)
        return {"success": True, "id": document_id}

    @app.post("/api/search")
    async def semantic_search(request: SearchRequest, svc: ServicesDep, user_id: UserIdDep):
        if user_id is None:
            return _missing_user()
        try:
            results = await svc.search.search(
                user_id=user_id,
                query=request.query,
                limit=request.limit or svc.settings.search_limit,
                min_score=request.min_score,
            )
        except SmartDocsError as exc:
            return _error_response(exc)
        return {
            "query": request.query,
            "results": [
                {
                    "document": _document_view(result.document),
                    "score": result.score,
                    "relevant_chunk": result.relevant_chunk,
                }
                for result in results
            ],
        }

    @app.post("/api/chat")
    async def chat(request: ChatRequest, svc: ServicesDep, user_id: UserIdDep):
        if user_id is None:
            return _missing_user()
        try:
            response = await svc.chat.ask(
                user_id=user_id,
                message=request.message,
                history=request.conversation_history,
                document_ids=request.document_ids,
                limit=request.limit or svc.settings.search_limit,
            )
        except SmartDocsError as exc:
            return _error_response(exc)
        return {"success": True, **response.model_dump(mode="json")}

    return app


def run_server(host: str = "127.0.0.1", port: int = 8000) -> None:
    """Run the server with uvicorn."""
    import uvicorn

    uvicorn.run(create_app(), host=host, port=port)
