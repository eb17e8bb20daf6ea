"""Package entry point for ``python -m voice_clips``.

Starts the HTTP API against the host bridge configured in .env.
"""

from voice_clips.server.app import run_api

if __name__ == "__main__":
    run_api()
