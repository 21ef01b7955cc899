import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lernova.config import settings
from lernova.database import init_db
from lernova.routers import auth, mail, payments

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Lernova Integrations")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allow_origins),
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

app.include_router(auth.router)
app.include_router(mail.router)
app.include_router(payments.router)


@app.on_event("startup")
def startup() -> None:
    init_db()


@app.get("/")
def root():
    return {"status": "Backend running"}
