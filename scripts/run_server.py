#!/usr/bin/env python3
"""
Script to run the CallFlow webhook server

Host, port and reload come from the same settings the app reads (.env or
environment), so SERVER_PORT and DEBUG behave identically here and in
callflow.main.
"""

import uvicorn

from callflow.core.config import settings


def main():
    """Run the server"""
    print(f"Starting CallFlow on {settings.server_host}:{settings.server_port}")
    print(f"Twilio webhooks: {settings.webhook_base_url}")
    print(f"Signature validation: {'on' if settings.twilio_validate_signatures else 'off'}")
    print("-" * 50)

    uvicorn.run(
        "callflow.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    main()
