"""
Entry point for the PDF crop server.

    python run_server.py [--host HOST] [--port PORT]

PORT defaults to the PORT environment variable (3000 if unset).
"""
import argparse

import uvicorn

from pdfcrop.core.config import settings


def main():
    parser = argparse.ArgumentParser(description="PDF crop server")
    parser.add_argument('--host', default=settings.host)
    parser.add_argument('--port', type=int, default=settings.port)
    parser.add_argument('--reload', action='store_true')
    args = parser.parse_args()

    uvicorn.run(
        'pdfcrop.main:app',
        host=args.host,
        port=args.port,
        log_level=settings.log_level.lower(),
        reload=args.reload,
    )


if __name__ == '__main__':
    main()
