# cartkit/main.py
import uvicorn

from cartkit.api import create_app
from cartkit.data.database import init_db
from cartkit.utils.logging import get_logger

logger = get_logger(__name__)

# tabela dla store/restore musi istniec przed pierwszym requestem
init_db()
logger.info("Database tables ready")

app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
