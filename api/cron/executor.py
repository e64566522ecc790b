import sys
from pathlib import Path

# Vercel runs this file in isolation; the repo root holds the packages.
sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from web.app import app

# Vercel ASGI entrypoint for the scheduled maintenance trigger
handler = app
