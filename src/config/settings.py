# src/config/settings.py
import os
from dotenv import load_dotenv

load_dotenv()

# Database settings
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///data/listings.db')

# Duplicate detection
DUPLICATE_RADIUS_METERS = float(os.getenv('DUPLICATE_RADIUS_METERS', '50'))

# Merge retry configuration
MERGE_MAX_ATTEMPTS = int(os.getenv('MERGE_MAX_ATTEMPTS', '3'))
MERGE_RETRY_WAIT = float(os.getenv('MERGE_RETRY_WAIT', '0.1'))

# Alerts and lifecycle
ALERT_MAX_LISTINGS = int(os.getenv('ALERT_MAX_LISTINGS', '50'))
INACTIVE_AFTER_DAYS = int(os.getenv('INACTIVE_AFTER_DAYS', '7'))

# Monitoring
METRICS_PORT = int(os.getenv('METRICS_PORT', '8000'))
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
