import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./barberflow.db")

# Appointment times are stored as naive wall-clock values in this zone
SHOP_TIMEZONE = os.getenv("SHOP_TIMEZONE", "UTC")

# Commission settings
DEFAULT_COMMISSION_RATE = os.getenv("DEFAULT_COMMISSION_RATE", "50")
DEFAULT_PAYMENT_METHOD = os.getenv("DEFAULT_PAYMENT_METHOD", "cash")

# Calendar policy fallbacks for days with no configured business hours
DEFAULT_OPEN_TIME = os.getenv("DEFAULT_OPEN_TIME", "08:00")
DEFAULT_CLOSE_TIME = os.getenv("DEFAULT_CLOSE_TIME", "18:00")
# "default_hours" opens an unconfigured day with the window above, "closed" rejects it
UNCONFIGURED_DAY_POLICY = os.getenv("UNCONFIGURED_DAY_POLICY", "default_hours").lower()

# When false only the start time must fall inside business hours
REQUIRE_END_WITHIN_HOURS = os.getenv("REQUIRE_END_WITHIN_HOURS", "false").lower() == "true"

# Upper bound on a single appointment, used to size the overlap lookup window
MAX_APPOINTMENT_MINUTES = int(os.getenv("MAX_APPOINTMENT_MINUTES", "480"))

# Grid used when listing bookable start times
SLOT_STEP_MINUTES = int(os.getenv("SLOT_STEP_MINUTES", "15"))

# Status sweep before appointment listings (the worker cron runs regardless)
STATUS_SWEEP_ENABLED = os.getenv("STATUS_SWEEP_ENABLED", "true").lower() == "true"
