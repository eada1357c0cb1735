# app/config.py
import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file

class Settings(BaseModel):
    # General app settings
    APP_NAME: str = "Audora Import API"
    env: str = os.getenv("ENV", "dev")

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))

    # CORS origins for the web dashboard (the mobile app does not need CORS)
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # OpenAI Whisper API Settings (for ASR)
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    whisper_api_url: str = os.getenv("WHISPER_API_URL", "https://api.openai.com/v1/audio/transcriptions")
    whisper_model: str = os.getenv("WHISPER_MODEL", "whisper-1")
    asr_timeout_sec: float = float(os.getenv("ASR_TIMEOUT_SEC", "300"))

    # GPT analysis: speaker split (S1/S2), per-speaker facts, summary
    enable_gpt_analysis: bool = os.getenv("ENABLE_GPT_ANALYSIS", "true").lower() in ("true", "1", "yes")
    gpt_model: str = os.getenv("GPT_MODEL", "gpt-4o-mini")
    gpt_api_url: str = os.getenv("GPT_API_URL", "https://api.openai.com/v1/chat/completions")

    # Object store (uploaded audio blobs live on local disk)
    storage_dir: str = os.getenv("STORAGE_DIR", "./storage")
    upload_url_expire_minutes: int = int(os.getenv("UPLOAD_URL_EXPIRE_MINUTES", "15"))

    # Import pipeline
    default_import_location: str = os.getenv("DEFAULT_IMPORT_LOCATION", "Imported from Mobile")
    # Off: a failed chunk leaves the conversation active with no transcript (retryable)
    end_on_chunk_failure: bool = os.getenv("END_ON_CHUNK_FAILURE", "false").lower() in ("true", "1", "yes")

settings = Settings()  # Instantiate configuration
