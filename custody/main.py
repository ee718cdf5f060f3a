from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlmodel import Session

from custody.api.v1 import index
from custody.api.v1 import roles
from custody.api.v1 import registry
from custody.api.v1 import controls
from custody.api.v1 import tokens
from custody.api.v1 import events


from custody.core.config import settings
from custody.core.exceptions import LedgerError, ledger_error_handler
from custody.core.logging import setup_logging
from custody.db.core import engine
from custody.services.access_control import RoleStore

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    with Session(engine) as session:
        RoleStore(session).bootstrap()
    yield


app = FastAPI(title=settings.app_name, lifespan=lifespan)

# Middlewares
origins = []

if settings.allowed_hosts:
    origins = settings.allowed_hosts.split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(LedgerError, ledger_error_handler)

# Register routes
app.include_router(index.router, prefix="/api/v1")
app.include_router(roles.router, prefix="/api/v1/roles", tags=["Roles"])
app.include_router(
    registry.router, prefix="/api/v1/registry", tags=["Registry"])
app.include_router(
    controls.router, prefix="/api/v1/controls", tags=["Controls"])
app.include_router(tokens.router, prefix="/api/v1/tokens", tags=["Tokens"])
app.include_router(events.router, prefix="/api/v1/events", tags=["Events"])

# Static files serving (lot labels)
app.mount("/static", StaticFiles(directory=settings.static_dir), name="static")

if __name__ == "__main__":
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,
        log_level=None,
    )
