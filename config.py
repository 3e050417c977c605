import os
from dotenv import load_dotenv

# Load .env file
load_dotenv()

class Config:
    # --- MongoDB Settings ---
    MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017/")
    DB_NAME = os.getenv("DB_NAME", "taskhub") # Can be overridden in .env

    # --- Environment ---
    ENV = os.getenv("ENV", "development") # "development", "production" or "testing"
    LOG_LEVEL = os.getenv("LOG_LEVEL")

    # --- Security Settings ---
    # In production, ALWAYS set this in .env. Never use the fallback.
    SECRET_KEY = os.getenv("SECRET_KEY")
    if ENV == "production" and not SECRET_KEY:
        raise ValueError("SECRET_KEY environment variable is mandatory in production!")
    elif not SECRET_KEY:
        SECRET_KEY = "dev_secret_key_change_in_prod"
    ALGORITHM = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24 * 30 # 30 Days

    # --- Realtime Settings ---
    # When enabled, sockets must present a token and always join their own channel
    REALTIME_REQUIRE_AUTH = os.getenv("REALTIME_REQUIRE_AUTH", "false").lower() in ("1", "true", "yes")

config = Config()
