from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from contextlib import asynccontextmanager

import logfire

from motor.motor_asyncio import AsyncIOMotorClient
from beanie import init_beanie

from middleware.authentication import AuthenticationMiddleware

from models.users import User

from routers import auth, users

from security.tokens import get_token_codec

from utils.exception_handlers import register_exception_handlers
from utils.logger import configure_logging, instrument_libraries
from utils.settings import get_settings


# Load settings first, a missing or weak JWT_SECRET stops the process here
settings = get_settings()

# Configure logfire BEFORE creating FastAPI app
configure_logging(settings.log_level, settings.logfire_write_token)

# Derive the signing key once for the process lifetime
get_token_codec()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logfire.info("Starting Modulith application...")

    client = AsyncIOMotorClient(settings.database_connection_string)  # * Connect to MongoDB

    await init_beanie(
        database=client[settings.database_name],
        document_models=[User],
    )
    logfire.info("Database initialized successfully")

    yield

    logfire.info("Shutting down Modulith application...")
    client.close()
    logfire.info("Application shutdown complete")


app = FastAPI(
    title="Modulith Commerce API",
    description="E-commerce backend API: user identity, registration and JWT authentication for web and mobile clients.",
    lifespan=lifespan,
)

if settings.logfire_write_token:
    instrument_libraries(app)

register_exception_handlers(app)

app.add_middleware(AuthenticationMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["127.0.0.1"])
app.add_middleware(GZipMiddleware, minimum_size=500)

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(users.account_router)


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok"}
