"""Serve a generated site directory over HTTP for local previewing."""

from __future__ import annotations

import functools
import http.server
import logging
import socketserver
import webbrowser
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3007


class ReusableTCPServer(socketserver.TCPServer):
    allow_reuse_address = True


def make_handler(site_path: Path):
    return functools.partial(http.server.SimpleHTTPRequestHandler, directory=str(site_path))


def serve_site(site_path: Path, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT, open_browser: bool = False) -> bool:
    """Block serving site_path until interrupted. False if there is nothing to serve."""
    if not site_path.is_dir():
        logger.error("Directory '%s' does not exist. Run 'scribe generate' first.", site_path)
        return False

    with ReusableTCPServer((host, port), make_handler(site_path)) as httpd:
        url = f"http://{host}:{port}"
        logger.info("Serving %s at %s", site_path, url)
        logger.info("Press Ctrl+C to stop")
        if open_browser:
            webbrowser.open(url)
        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            logger.info("Server stopped.")
    return True
