from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse, Response
from fastapi.staticfiles import StaticFiles

from .config import SiteConfig
from .content import PostStore
from .highlight import Highlighter
from .markdown_render import MarkdownRenderer
from .pages import PageRenderer
from .paginate import paginate, server_page_path

logger = logging.getLogger(__name__)


class SiteState:
    """Everything computed once at startup and shared by all requests."""

    def __init__(self, config: SiteConfig, store: PostStore, pages: PageRenderer, highlighter: Highlighter):
        self.config = config
        self.store = store
        self.pages = pages
        self.highlighter = highlighter
        self.listing: list[str] = []
        self.archive = ""

    def load(self) -> None:
        self.store.discover()
        summaries = self.store.summaries()
        self.listing = [
            self.pages.render_listing(page)
            for page in paginate(summaries, self.config.paginate, server_page_path)
        ]
        self.archive = self.pages.render_archive(summaries)
        logger.info("Serving %d posts across %d pages", len(summaries), len(self.listing))


def create_app(
    config: SiteConfig,
    store: Optional[PostStore] = None,
    highlighter: Optional[Highlighter] = None,
) -> FastAPI:
    highlighter = highlighter or getattr(getattr(store, "renderer", None), "highlighter", None)
    highlighter = highlighter or Highlighter(config.highlight_theme)
    store = store or PostStore(config, MarkdownRenderer(highlighter))
    state = SiteState(config, store, PageRenderer(config, minify=False), highlighter)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        state.load()
        try:
            yield
        finally:
            highlighter.shutdown()
            logger.info("Highlighter released")

    app = FastAPI(title=config.name, lifespan=lifespan)
    app.state.site = state

    @app.get("/", response_class=HTMLResponse)
    async def index():
        return HTMLResponse(state.listing[0])

    @app.get("/page/{number}", response_class=HTMLResponse)
    async def listing_page(number: str):
        if not number.isdigit() or not 1 <= int(number) <= len(state.listing):
            return RedirectResponse("/", status_code=302)
        return HTMLResponse(state.listing[int(number) - 1])

    @app.get("/archive", response_class=HTMLResponse)
    async def archive():
        return HTMLResponse(state.archive)

    @app.get("/robots.txt", response_class=PlainTextResponse)
    async def robots():
        return PlainTextResponse(config.robots)

    @app.get("/assets/css/highlight.css")
    async def highlight_css():
        return Response(highlighter.stylesheet(), media_type="text/css")

    if config.assets.is_dir():
        app.mount("/assets", StaticFiles(directory=config.assets), name="assets")
    else:
        logger.warning("Assets directory not found: %s", config.assets)

    @app.get("/{permalink:path}", response_class=HTMLResponse)
    async def post_page(permalink: str, request: Request):
        post = state.store.get("/" + permalink.strip("/"))
        if post is None:
            logger.info("No post at %s, redirecting", request.url.path)
            return RedirectResponse("/", status_code=302)
        content = await state.store.render_async(post)
        return HTMLResponse(state.pages.render_post(post, content))

    return app
