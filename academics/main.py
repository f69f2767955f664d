from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from academics.api.v1.academic_records.router import router as academic_records_router
from academics.api.v1.assessments.router import router as assessments_router
from academics.api.v1.promotions.router import router as promotions_router
from academics.api.v1.reports.router import router as reports_router
from academics.api.v1.scores.router import router as scores_router
from academics.api.v1.teaching_assignments.router import router as teaching_assignments_router
from academics.core.config import settings
from academics.core.logging import setup_logging


def create_app() -> FastAPI:
    setup_logging(settings)
    app = FastAPI(title="Academic Records Backend")

    # CORS: allow frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(assessments_router)
    app.include_router(scores_router)
    app.include_router(academic_records_router)
    app.include_router(promotions_router)
    app.include_router(reports_router)
    app.include_router(teaching_assignments_router)

    return app


app = create_app()
