#!/usr/bin/env python3
"""CLI entry point for the Study Buddy proxy.

Usage:
    studybuddy-proxy --config configs/proxy.yaml
    studybuddy-proxy --port 8787 --gateway-url https://gateway.example/v1/chat/completions

CLI options override values from the YAML file, which override defaults.
"""

import argparse
import logging
import sys

from pydantic import ValidationError

from studybuddy.server.config import ProxyConfig
from studybuddy.server.proxy import start_proxy_server
from studybuddy.server.utils import merge_configs


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Serve the Study Buddy gateway proxy",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # Configuration file
    parser.add_argument(
        '--config',
        type=str,
        help='Path to YAML configuration file'
    )

    # Server options
    parser.add_argument('--host', type=str, help='Server host address')
    parser.add_argument('--port', type=int, help='Server port')
    parser.add_argument('--endpoint', type=str, help='Path of the chat endpoint')

    # Gateway options
    parser.add_argument('--gateway-url', type=str, help='OpenAI-compatible chat completions URL')
    parser.add_argument('--model', type=str, help='Model name sent to the gateway')
    parser.add_argument('--api-key-env', type=str, help='Environment variable holding the gateway key')

    # Generation options
    parser.add_argument('--temperature', type=float, help='Sampling temperature')
    parser.add_argument('--top-p', type=float, help='Top-p sampling parameter')

    parser.add_argument('--debug', action='store_true', help='Verbose logging')
    return parser


def main() -> None:
    """Main CLI function."""
    args = build_parser().parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    try:
        base = ProxyConfig.from_yaml(args.config) if args.config else ProxyConfig()
        config = merge_configs(base, vars(args))
    except (FileNotFoundError, ValueError, ValidationError) as e:
        print(f"❌ Configuration error: {e}")
        sys.exit(1)

    print("🚀 Starting Study Buddy proxy...")
    print(f"📋 Configuration:")
    print(f"  Endpoint: http://{config.server.host}:{config.server.port}{config.server.endpoint}")
    print(f"  Gateway: {config.gateway.url}")
    print(f"  Model: {config.gateway.model}")
    print(f"  Temperature: {config.generation.temperature}, top_p: {config.generation.top_p}")
    print("   Press Ctrl+C to stop the server\n")

    try:
        start_proxy_server(config)
    except KeyboardInterrupt:
        print("\n✓ Proxy stopped by user")
        sys.exit(0)
    except Exception as e:
        print(f"❌ Error starting proxy: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
