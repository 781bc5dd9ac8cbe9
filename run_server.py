#!/usr/bin/env python3
"""Run the quickmath API server."""

import os

import uvicorn


def main():
    host = os.environ.get('QUICKMATH_HOST', '0.0.0.0')
    port = int(os.environ.get('QUICKMATH_PORT', '8000'))
    print("Starting QuickMath API server...")
    print(f"API documentation available at: http://localhost:{port}/docs")
    uvicorn.run(
        "server.app:app",
        host=host,
        port=port,
        reload=True
    )


if __name__ == "__main__":
    main()
