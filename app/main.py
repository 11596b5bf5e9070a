from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .config import settings
from .core.errors import register_error_handlers
from .core.events import EventBus, NotificationCenter
from .database import init_db
from .logging_config import configure_logging
from .routers import auth as auth_router
from .routers import budgets as budgets_router
from .routers import categories as categories_router
from .routers import goals as goals_router
from .routers import notifications as notifications_router
from .routers import recurring as recurring_router
from .routers import reports as reports_router
from .routers import transactions as transactions_router


def create_app(create_tables: bool = True) -> FastAPI:
    configure_logging()

    app = FastAPI(title="Personal Finance Tracker – Backend", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # One bus and notification list per application instance
    app.state.events = EventBus()
    app.state.notifications = NotificationCenter()
    app.state.notifications.attach(app.state.events)

    register_error_handlers(app)

    if create_tables:
        @app.on_event("startup")
        def on_startup():
            init_db()

    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.include_router(auth_router.router)
    app.include_router(transactions_router.router)
    app.include_router(budgets_router.router)
    app.include_router(categories_router.router)
    app.include_router(goals_router.router)
    app.include_router(recurring_router.router)
    app.include_router(reports_router.router)
    app.include_router(notifications_router.router)

    return app


app = create_app()
