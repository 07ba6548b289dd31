import os
from dotenv import load_dotenv

# Load environment variables from the .env file in the service root
load_dotenv(dotenv_path=os.path.join(os.path.dirname(__file__), '..', '.env'))

SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")
FRONTEND_ORIGINS = os.getenv("FRONTEND_ORIGINS", "*")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.getenv("PORT", "8080"))

# Allowed drift for every "sums must match" check, in currency units
TOLERANCE = 0.01

SPLIT_KINDS = ("equal", "exact", "percentage")


def cors_origins() -> list[str]:
    """Return the configured CORS origins, falling back to "*"."""
    origins = [o.strip() for o in FRONTEND_ORIGINS.split(',') if o.strip()]
    return origins if origins else ["*"]
