from __future__ import annotations

import argparse
import logging

import uvicorn

from intake_sync.internal_core.config import load_config


def main() -> None:
    config = load_config()
    parser = argparse.ArgumentParser(description="Run the intake sync realtime server")
    parser.add_argument("--host", default=config.INTAKE_HOST, help=f"Bind address (default: {config.INTAKE_HOST})")
    parser.add_argument("--port", type=int, default=config.INTAKE_PORT, help=f"Bind port (default: {config.INTAKE_PORT})")
    parser.add_argument(
        "--log-level",
        default=config.INTAKE_LOG_LEVEL,
        help=f"Python log level (default: {config.INTAKE_LOG_LEVEL})",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger(__name__).info(
        "Ready on %s:%s (socket path %s)", args.host, args.port, config.INTAKE_SOCKET_PATH
    )
    uvicorn.run(
        "intake_sync.api.main:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()
