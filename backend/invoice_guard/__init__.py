from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from invoice_guard.config import settings

def create_app():
    from invoice_guard.database import init_db
    from invoice_guard.logging_config import setup_logging

    setup_logging()
    init_db()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="API for validating vendor invoices against contracted rates",
        version="0.1.0"
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from invoice_guard.api.routes import api_router
    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.get("/")
    def root():
        return {
            "message": "Welcome to Invoice Guard API",
            "docs_url": "/docs",
        }

    return app
