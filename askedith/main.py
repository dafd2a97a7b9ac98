from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlmodel import Session
from askedith.config import settings
from askedith.deps import engine, init_db
from askedith.errors import WizardValidationError
from askedith.logging_config import setup_logging
from askedith.routers import wizard, resources, email, calendar, export, admin
from askedith.services import catalog

logger = setup_logging(settings.LOG_LEVEL)

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    with Session(engine) as session:
        catalog.seed_resources(session)
    logger.info("AskEdith started")
    yield

app = FastAPI(title="AskEdith Care Navigator", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(WizardValidationError)
async def wizard_validation_error(request: Request, exc: WizardValidationError):
    return JSONResponse(status_code=422, content={"field": exc.field, "message": exc.message})

@app.get("/healthz")
def healthz():
    return {"status": "ok"}

app.include_router(wizard.router, prefix="/wizard", tags=["wizard"])
app.include_router(resources.router, prefix="/resources", tags=["resources"])
app.include_router(email.router, prefix="/email", tags=["email"])
app.include_router(calendar.router, prefix="/calendar", tags=["calendar"])
app.include_router(export.router, prefix="/export", tags=["export"])
app.include_router(admin.router, prefix="/admin", tags=["admin"])
