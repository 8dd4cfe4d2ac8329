import os

import uvicorn
from autostream.main import app

if __name__ == "__main__":
    uvicorn.run("autostream.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "7010")), reload=False)
