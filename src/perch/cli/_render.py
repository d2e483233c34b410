"""``perch render`` — mount a root component and print the settled document."""

import argparse
import logging
import sys
from functools import partial
from pathlib import Path

import anyio
from bs4 import BeautifulSoup

from perch.config import PerchConfig
from perch.context import State
from perch.fetch import Fetcher
from perch.manager import Manager

_EMPTY_PAGE = '<html><body><div id="app"></div></body></html>'


async def render(
    url: str,
    *,
    document: str = _EMPTY_PAGE,
    host: str = "#app",
    config: PerchConfig | None = None,
    fetcher: Fetcher | None = None,
) -> tuple[str, State]:
    """Render ``url`` into ``host`` and return the HTML and the root state."""
    doc = BeautifulSoup(document, "html.parser")
    async with Manager(config, document=doc, fetcher=fetcher) as manager:
        root = manager.root(host, url)
        await manager.settle()
        return doc.decode(), root.state


def run_render(args: argparse.Namespace) -> int:
    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    document = _EMPTY_PAGE
    if args.document:
        document = Path(args.document).read_text(encoding="utf-8")

    config = PerchConfig(debug=args.debug, base_url=args.base_url)
    html, state = anyio.run(
        partial(render, args.url, document=document, host=args.host, config=config)
    )
    sys.stdout.write(html + "\n")
    return 0 if state == State.READY else 1
