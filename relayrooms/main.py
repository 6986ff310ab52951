from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from relayrooms.api.dependencies import close_dependencies
from relayrooms.api.health import router as health_router
from relayrooms.api.messages import router as messages_router
from relayrooms.api.rooms import router as rooms_router
from relayrooms.core.config import settings
from relayrooms.core.errors import BaseCustomException
from relayrooms.core.logging import setup_logging
from relayrooms.middleware.error_handler import ErrorHandlerMiddleware, custom_exception_handler


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging()
    yield
    # Shutdown
    await close_dependencies()


app = FastAPI(title="relayrooms", lifespan=lifespan)
app.add_middleware(ErrorHandlerMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_exception_handler(BaseCustomException, custom_exception_handler)

# Include routers
app.include_router(health_router)
app.include_router(rooms_router)
app.include_router(messages_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "relayrooms.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
