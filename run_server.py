import os

import uvicorn

if __name__ == "__main__":
    host, _, port = os.environ.get("DEVLOG_ADDR", "127.0.0.1:8787").rpartition(":")

    print(f"Starting devlog API on {host}:{port}")

    uvicorn.run(
        "backend.devlog.main:app",
        host=host or "127.0.0.1",
        port=int(port),
    )
