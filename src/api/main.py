from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.routes.sessions import router as sessions_router

app = FastAPI(
    title="Speech Coach Session Analytics API",
    description="Metrics, timelines and focus cues for recorded speaking sessions",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
    ],
    allow_origin_regex=r"https://.*\.vercel\.app|http://localhost:\d+",
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(sessions_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}
