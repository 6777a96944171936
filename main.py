import asyncio
import json
import logging
from typing import Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config.settings import settings
from app.database import get_db
from app.models.user import User
from app.routers import auth, user, task, notification, dashboard
from app.services.scheduler import task_scheduler
from app.services.websocket_manager import websocket_manager
from app.utils.auth import get_user_from_token, require_manager
from app.utils.errors import InternalError, ServiceError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Task Manager API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Route registration
app.include_router(auth.router)
app.include_router(user.router)
app.include_router(task.router)
app.include_router(notification.router)
app.include_router(dashboard.router)


# Error responses keep FastAPI's {"detail": ...} shape
@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    message = message.removeprefix("Value error, ")
    return JSONResponse(status_code=400, content={"detail": message})


def _internal_error_response() -> JSONResponse:
    error = InternalError()
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    # The request session is rolled back when get_db closes it
    logger.exception(f"Database error on {request.method} {request.url.path}")
    return _internal_error_response()


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return _internal_error_response()


# Startup and shutdown events
@app.on_event("startup")
async def startup_event():
    logger.info("Starting Task Manager API...")
    websocket_manager.bind_loop(asyncio.get_running_loop())
    if settings.SCHEDULER["enabled"]:
        task_scheduler.start()
    else:
        logger.info("Task scheduler disabled")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Task Manager API...")
    task_scheduler.stop()


# Root route
@app.get("/")
def read_root():
    return {"message": "Task Manager API"}


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/scheduler/status")
def get_scheduler_status(current_user: User = Depends(require_manager)):
    """Get scheduler status, job information and live connection counts"""
    status = task_scheduler.get_scheduler_status()
    status["websocket"] = {
        "connected_users": websocket_manager.get_connected_users(),
        "total_connections": websocket_manager.get_total_connections(),
    }
    return status


@app.post("/scheduler/trigger/deadlines")
def trigger_deadline_sweep(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """Run the approaching and overdue deadline scans now"""
    logger.info(f"Deadline sweep triggered by user {current_user.id}")
    return task_scheduler.sweep(db=db)


async def _authenticate_socket(websocket: WebSocket, token: Optional[str], db: Session) -> Optional[int]:
    """Subscribe the socket to its user's channel and acknowledge"""
    user = get_user_from_token(token, db)
    user_id = user.id if user else None
    # Release the connection; the socket may stay open for hours
    db.close()

    if user_id is not None:
        websocket_manager.subscribe(websocket, user_id)
    else:
        logger.info("WebSocket authentication failed")

    await websocket_manager.send_personal_message(
        {"type": "authenticated", "success": user_id is not None}, websocket
    )
    return user_id


# Real-time channel: authenticate with ?token= or an "authenticate" message
@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, token: Optional[str] = None, db: Session = Depends(get_db)):
    await websocket.accept()
    user_id = None

    try:
        if token:
            user_id = await _authenticate_socket(websocket, token, db)

        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                continue
            if not isinstance(message, dict):
                continue

            if message.get("type") == "authenticate":
                if user_id is not None:
                    websocket_manager.disconnect(websocket, user_id)
                user_id = await _authenticate_socket(websocket, message.get("token"), db)
            elif message.get("type") == "ping":
                await websocket_manager.send_personal_message({"type": "pong"}, websocket)
    except WebSocketDisconnect:
        pass
    finally:
        if user_id is not None:
            websocket_manager.disconnect(websocket, user_id)
