import os

from dotenv import load_dotenv

from .config import MAX_UPLOAD_BYTES, TIMEOUTS
from .models import Settings

# Load environment from a .env file if present
load_dotenv()


def get_settings() -> Settings:
    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        model_name=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
        embedding_model=os.getenv("EMBEDDING_MODEL", "text-embedding-3-small"),
        similarity_provider=os.getenv("SIMILARITY_PROVIDER") or None,
        similarity_timeout_seconds=float(os.getenv("SIMILARITY_TIMEOUT_SECONDS", str(TIMEOUTS["similarity"]))),
        enrichment_timeout_seconds=float(os.getenv("ENRICHMENT_TIMEOUT_SECONDS", str(TIMEOUTS["enrichment"]))),
        max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", str(MAX_UPLOAD_BYTES))),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
