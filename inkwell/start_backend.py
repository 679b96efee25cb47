#!/usr/bin/env python3
"""
Start the Inkwell API under uvicorn.

Host and port come from INKWELL_HOST / INKWELL_PORT.
"""
import os

import uvicorn


def main() -> None:
    host = os.getenv("INKWELL_HOST", "0.0.0.0")
    port = int(os.getenv("INKWELL_PORT", "8000"))
    print(f"[Backend] Starting Inkwell on http://{host}:{port}")
    uvicorn.run(
        "inkwell.main:app",
        host=host,
        port=port,
        reload=False,
        log_level="info",
        access_log=True,
    )


if __name__ == "__main__":
    main()
