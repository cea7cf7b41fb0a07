#!/usr/bin/env python3
"""Start the libbump web application."""

import uvicorn

if __name__ == "__main__":
    print("Starting libbump package.json upgrade API...")
    print("Upgrade endpoint: POST http://localhost:8000/api/upgrade (JSON) or /api/upload (file)")
    print("API docs: http://localhost:8000/docs")
    print("Press Ctrl+C to stop")
    print()

    uvicorn.run(
        "apps.web.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        reload_dirs=["apps", "libbump"]
    )
