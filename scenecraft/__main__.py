"""
Run the SceneCraft server: ``python -m scenecraft [--config FILE]``.
"""
import argparse

from .config import EngineConfig
from .server import Server


def main(argv=None):
    parser = argparse.ArgumentParser(description="SceneCraft server")
    parser.add_argument("--config", help="JSON configuration file")
    parser.add_argument("--host", help="Host to bind to")
    parser.add_argument("--port", type=int, help="Port to bind to")
    parser.add_argument("--save-dir", help="Directory to save the scene into on shutdown")
    parser.add_argument("--verbose", action="store_true", help="Log at INFO level")
    args = parser.parse_args(argv)

    config = EngineConfig.load(args.config) if args.config else EngineConfig()
    if args.save_dir:
        config.server.save_dir = args.save_dir
    if args.verbose:
        config.server.verbose = True

    server = Server(config=config)
    server.start(host=args.host, port=args.port, threaded=False)


if __name__ == "__main__":
    main()
