from dotenv import load_dotenv
import os
from openai import AsyncOpenAI

load_dotenv()

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Groq exposes an OpenAI-compatible API, so the OpenAI SDK talks to it directly
GROQ_API_KEY = os.getenv("GROQ_API_KEY", "")
GROQ_BASE_URL = os.getenv("GROQ_BASE_URL", "https://api.groq.com/openai/v1")
GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")

async_client = AsyncOpenAI(api_key=GROQ_API_KEY, base_url=GROQ_BASE_URL)

# Saved LinkedIn session produced by save_state.py
LINKEDIN_STATE_FILE = os.getenv(
    "LINKEDIN_STATE_FILE", os.path.join(BASE_DIR, "linkedin_state.json")
)

# Serverless images ship their own Chromium build
CHROMIUM_EXECUTABLE_PATH = os.getenv("CHROMIUM_EXECUTABLE_PATH")


def is_production() -> bool:
    """True on Netlify/Lambda style deployments or when APP_ENV=production."""
    return (
        os.getenv("APP_ENV") == "production"
        or os.getenv("NETLIFY") == "true"
        or bool(os.getenv("AWS_LAMBDA_FUNCTION_NAME"))
    )
