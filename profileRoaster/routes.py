from fastapi import APIRouter, FastAPI
from fastapi.responses import JSONResponse
from openai import OpenAIError
from pydantic import BaseModel
import logging
import time

from llm_utils import single_llm_call
from .prompts import RoastPrompt
from .scraper import scrape_profile_text, ScrapeError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Profile Roaster"])


class RoastRequest(BaseModel):
    profile: str


@router.post("/roast")
async def roast(req: RoastRequest):
    """Roast a LinkedIn profile URL, or raw profile text pasted by the user."""
    start_time = time.time()

    # Anything that is not a LinkedIn link is treated as the profile text itself
    if "linkedin.com" in req.profile:
        try:
            profile_data = await scrape_profile_text(req.profile)
        except ScrapeError as e:
            logger.error("Scraping error: %s", e)
            return JSONResponse(
                status_code=400,
                content={"error": f"Scraping failed: {e}. Please verify the function timeout and memory limits."},
            )
        logger.info("[roast] Scrape took %.3fs, %d chars", time.time() - start_time, len(profile_data))
    else:
        profile_data = req.profile

    try:
        response = await single_llm_call(RoastPrompt(profile_data).generate_prompt())
    except OpenAIError as e:
        logger.error("AI Generation Error: %s", e)
        return JSONResponse(status_code=500, content={"error": "Failed to generate roast."})

    choices = getattr(response, "choices", None) or []
    if not choices:
        logger.error("AI Generation Error: completion came back without choices")
        return JSONResponse(status_code=500, content={"error": "Failed to generate roast."})

    logger.info("[roast] Total request time: %.3fs", time.time() - start_time)
    return {"roast": choices[0].message.content}


# Standalone mode for testing without main app
if __name__ == "__main__":
    import uvicorn
    app = FastAPI(title="LinkedIn Profile Roaster API")
    app.include_router(router)
    uvicorn.run(app, host="127.0.0.1", port=8001)
