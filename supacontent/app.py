from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from supacontent.core.migrations.migration_registry import MigrationRegistry
from supacontent.modules.settings import Settings
from supacontent.routers.migrations_router import router as migrations_router
from supacontent.services.database.connection_manager import ConnectionManager


def create_app(settings: Settings = None) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        app.state.connection = ConnectionManager(settings.database_url)
        app.state.database = await app.state.connection.connect()
        app.state.registry.load_manifest()
        yield
        # Shutdown
        await app.state.connection.disconnect()

    app = FastAPI(title="supacontent", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.registry = MigrationRegistry(settings.migrations_dir)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(migrations_router)

    @app.get("/")
    async def root():
        return {"status": "online", "system": "supacontent"}

    @app.get("/health")
    async def health():
        connection = getattr(app.state, "connection", None)
        healthy = connection is not None and await connection.health_check()
        return {"database": "ok" if healthy else "unavailable"}

    return app


app = create_app()
