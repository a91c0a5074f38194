import os

import uvicorn  # type: ignore

from app.utils import get_logger

log = get_logger(__name__)

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    log.info("Running places server on port %s", port)
    uvicorn.run("app.main:app", reload=True, host="0.0.0.0", port=port)
