from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from modelgate.server.api.logs import router as logs_router
from modelgate.server.api.providers import router as providers_router
from modelgate.server.core.config import get_settings
from modelgate.server.core.gateway import ProviderGateway


@asynccontextmanager
async def lifespan(app: FastAPI):
    gateway = ProviderGateway(get_settings())
    app.state.gateway = gateway
    gateway.log.info("SYSTEM", "ModelGate API started")
    yield
    await gateway.aclose()


settings = get_settings()

app = FastAPI(title=settings.api_title, version=settings.api_version, lifespan=lifespan)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers
app.include_router(providers_router, prefix=settings.api_prefix)
app.include_router(logs_router, prefix=settings.api_prefix)


@app.get("/")
async def root() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}
