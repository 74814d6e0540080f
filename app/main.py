import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.assignments.router import router as assignments_router
from app.api.v1.attendance.router import router as attendance_router
from app.api.v1.auth.router import router as auth_router
from app.api.v1.batches.router import router as batches_router
from app.api.v1.followups.router import router as followups_router
from app.api.v1.students.router import router as students_router
from app.api.v1.users.router import router as users_router
from app.core.logging import configure_logging
from app.db.schema import init_db
from app.db.seed_admin import seed_default_admin
from app.db.session import AsyncSessionLocal, engine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    # A store that cannot be initialized is fatal; let the error stop startup
    await init_db(engine)
    async with AsyncSessionLocal() as db:
        await seed_default_admin(db)
    logger.info("Attendance backend ready")
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    app = FastAPI(title="Attendance Tracker Backend", lifespan=lifespan)

    # CORS: allow the mobile/web client to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(batches_router)
    app.include_router(assignments_router)
    app.include_router(students_router)
    app.include_router(attendance_router)
    app.include_router(followups_router)

    return app


app = create_app()
