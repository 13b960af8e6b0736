"""Run FastAPI server."""
import logging

import uvicorn

from ancestree.config import settings

if __name__ == "__main__":
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger(__name__).info("Starting Ancestree API on http://localhost:8000")
    uvicorn.run("ancestree.api.main:app", host="0.0.0.0", port=8000)
