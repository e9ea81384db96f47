"""Global pytest configuration."""

import os

# Set DATABASE_URL for tests before any imports; fixtures build their own engines
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./itinerary-test.db")
