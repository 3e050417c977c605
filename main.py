from logging_config import setup_logging

# Initialize logging BEFORE anything else
setup_logging()

from contextlib import asynccontextmanager
from logging_config import get_logger
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from middleware import RequestLifecycleMiddleware
from realtime.channels import ChannelRouter, ConnectionRegistry
from routes import auth, tasks, notifications, sockets

logger = get_logger("app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Channel membership lives exactly as long as the app
    app.state.channel_router = ChannelRouter(ConnectionRegistry())
    logger.info("Realtime channel router started")
    try:
        yield
    finally:
        app.state.channel_router.close()
        logger.info("Realtime channel router stopped")


app = FastAPI(title="TaskHub API", lifespan=lifespan)

# Request lifecycle middleware (request ID, context vars, duration logging)
app.add_middleware(RequestLifecycleMiddleware)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation failed", extra={"data": {"path": request.url.path, "errors": len(exc.errors())}})
    return JSONResponse(
        status_code=400,
        content={"detail": "Validation Error", "errors": jsonable_encoder(exc.errors())},
    )


# REGISTER ROUTERS
app.include_router(auth.router)
app.include_router(tasks.router)
app.include_router(notifications.router)
app.include_router(sockets.router)

logger.info("All routers registered, TaskHub API ready")

@app.get("/")
async def root():
    return {"status": "online", "message": "TaskHub API is running"}
