import os

import uvicorn

from typemeteor.app import create_app
from typemeteor.config import settings

app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8000")),
        reload=settings.DEBUG,
    )
