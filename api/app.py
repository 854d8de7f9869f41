# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

from wealth_model.api import create_app
from wealth_model.config import configure_logging

# Process environment wins over the local .env file
env_path = Path(__file__).resolve().parent / ".env"
if env_path.exists():
    load_dotenv(env_path, override=False)

configure_logging()
app = create_app()


if __name__ == "__main__":
    port = int(os.getenv("PORT", "8001"))
    app.run(host=os.getenv("HOST", "0.0.0.0"), port=port, debug=False)
