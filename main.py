import sys
import os

# Ensure the project root is on sys.path so submodules can import
# top-level modules (config, llm_utils)
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from profileRoaster.routes import router as roast_router
from profileRoaster.scraper import reset_authenticated_context

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # The cached browser outlives requests; shut it down with the app
    await reset_authenticated_context()


app = FastAPI(title="LinkedIn Profile Roaster", lifespan=lifespan)

origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:8000",
    "http://127.0.0.1:8000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_origin_regex=r"^https://.*\.netlify\.app$",
)

# Mount routers
app.include_router(roast_router)


@app.get("/")
async def welcome():
    return {"message": "Welcome to the LinkedIn Profile Roaster API!"}


@app.delete("/clear-cache")
async def clear_cache():
    await reset_authenticated_context()
    return {"success": True, "message": "Cached browser context closed"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", 8000)))
