"""
ProSe Counsel Server Runner
Run this directly: python run_server.py
Host, port and debug come from the same settings the app reads (.env / environment).
"""

import uvicorn

from prose_counsel.core.config import get_settings


def main():
    settings = get_settings()

    print()
    print("=" * 60)
    print(f"  {settings.app_name.upper()} v{settings.app_version}")
    print("=" * 60)
    print()
    print(f"  API:       http://localhost:{settings.port}/api")
    if settings.enable_docs:
        print(f"  API Docs:  http://localhost:{settings.port}/api/docs")
    print(f"  AI:        {'configured' if settings.ai_configured else 'OPENAI_API_KEY not set'}")
    print()
    print("  Press Ctrl+C to stop")
    print("=" * 60)
    print()

    uvicorn.run(
        "prose_counsel.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        workers=1,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
