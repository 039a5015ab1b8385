import os
from dotenv import load_dotenv

load_dotenv(override=False)

SQLALCHEMY_DATABASE_URL = os.getenv("SQLALCHEMY_DATABASE_URL", "sqlite:///./mealcycle.db")

# Tokens are issued by the external auth service; we only verify them.
SECRET_KEY = os.getenv("SECRET_KEY", "")
ALGORITHM = os.getenv("ALGORITHM", "HS256")

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# Which activity source wins when a profile has both a stored level and weekly minutes.
# Options: override (stored level first), minutes (weekly minutes first)
ACTIVITY_LEVEL_PRECEDENCE = os.getenv("ACTIVITY_LEVEL_PRECEDENCE", "override").lower()

# Hour (UTC) the nightly rollover sweep runs
ROLLOVER_SWEEP_HOUR = int(os.getenv("ROLLOVER_SWEEP_HOUR", "3"))
