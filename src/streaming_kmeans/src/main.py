import uvicorn

from streaming_kmeans.src.app import create_app
from streaming_kmeans.src.config import config
from streaming_kmeans.src.utils.logging_utils import configure_logger

configure_logger(config.app.log_level)
app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "streaming_kmeans.src.main:app",
        host="0.0.0.0",
        port=config.app.server_port,
        reload=True,
    )
