from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from web.backend.deps import get_config

app = FastAPI(title="Music Today API", version="0.1.0")

# CORS: ALLOWED_ORIGINS overrides the dev default
allowed_origins = get_config().web.allowed_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

# Include routers
from web.backend.routers import today

app.include_router(today.router, prefix="/api", tags=["today"])


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
