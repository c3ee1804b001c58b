import logging

import uvicorn

from catalog.config import HOST, LOG_LEVEL, PORT, RELOAD

if __name__ == "__main__":
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger(__name__).info("Starting server at http://%s:%d", HOST, PORT)
    uvicorn.run(
        "catalog.api:app",
        host=HOST,
        port=PORT,
        reload=RELOAD,
        log_level=LOG_LEVEL.lower(),
    )
