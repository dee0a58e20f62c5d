"""Entry point for running as a module."""
from synergy_dj.api import app
from synergy_dj.config import load_local_env_file, load_settings
import uvicorn

if __name__ == "__main__":
    load_local_env_file()
    uvicorn.run(app, host="0.0.0.0", port=load_settings().port)
