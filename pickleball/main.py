import logging

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from pickleball.api.endpoints import tournaments as tournament_endpoints
from pickleball.api.endpoints import matches as match_endpoints
from pickleball.core.config import settings
from pickleball.core.exceptions import NotFoundError, StateError, TournamentError, ValidationError
from pickleball.models import create_tables

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s | %(levelname)-5s | %(name)s: %(message)s",
)

app = FastAPI(title="Pickleball Tournament API")

_STATUS_BY_ERROR = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (StateError, status.HTTP_409_CONFLICT),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
)


@app.exception_handler(TournamentError)
async def tournament_error_handler(request: Request, exc: TournamentError):
    status_code = next((code for kind, code in _STATUS_BY_ERROR if isinstance(exc, kind)),
                       status.HTTP_400_BAD_REQUEST)
    return JSONResponse(status_code=status_code, content={"detail": exc.message, **exc.details})


@app.on_event("startup")
async def startup_event():
    create_tables()


# Include routers
app.include_router(tournament_endpoints.router, prefix="/tournaments", tags=["Tournaments"])
app.include_router(match_endpoints.router, prefix="/matches", tags=["Matches"])


if __name__ == "__main__":
    uvicorn.run("pickleball.main:app", host="0.0.0.0", port=8000, reload=True)
