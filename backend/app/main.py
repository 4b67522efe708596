from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from routes.replay import router as replay_router
from routes.session_ws import router as session_ws_router
from routes.sessions import router as sessions_router
from routes.translate import router as translate_router

app = FastAPI(title="Infraread API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(sessions_router, prefix="/api")
app.include_router(replay_router, prefix="/api")
app.include_router(translate_router, prefix="/api")
app.include_router(session_ws_router, prefix="/api")
