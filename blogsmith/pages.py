from __future__ import annotations

import html
from typing import Callable, Optional, Sequence

from .config import SiteConfig
from .content import Post, PostSummary
from .paginate import Page
from .render import minify_html, read_template, render_template

PageTemplate = Callable[[dict], str]

EMPTY_STATE = "<h2>No post found</h2>"


def post_template(data: dict) -> str:
    page = data["page"]
    tags = "".join(
        f'<li><span><i class="fa fa-paperclip" aria-hidden="true"></i>{html.escape(tag)}</span></li>'
        for tag in page.get("tags", ())
    )
    return (
        '<div class="post">'
        f'<div class="post-title">{html.escape(page["title"])}</div>'
        f'<span class="post-date"><time>{html.escape(page["date"])}</time></span>'
        f'<div class="post-tag"><ul>{tags}</ul></div>'
        f'<div class="post-body">{data["content"]}</div>'
        "</div>"
    )


def list_template(data: dict) -> str:
    paginator = data["paginator"]
    posts: Sequence[PostSummary] = paginator["posts"]
    items = []
    for post in posts:
        description = (
            f'<div class="list-post-desc">{html.escape(post.description)}</div>' if post.description else ""
        )
        items.append(
            '<div class="list-post">'
            f'<a href="{html.escape(post.url, quote=True)}">'
            f'<div class="list-post-date"><time>{html.escape(post.date)}</time></div>'
            f'<div class="list-post-title">{html.escape(post.title)}</div>'
            f"{description}"
            "</a></div>"
        )
    previous_path = paginator.get("previous_path")
    next_path = paginator.get("next_path")
    previous_link = (
        f'<a href="{html.escape(previous_path, quote=True)}" class="previous">'
        '<i class="fa fa-angle-left" aria-hidden="true"></i> previous</a>'
        if previous_path
        else ""
    )
    next_link = (
        f'<a href="{html.escape(next_path, quote=True)}" class="next">'
        'next <i class="fa fa-angle-right" aria-hidden="true"></i></a>'
        if next_path
        else ""
    )
    return (
        '<div class="list">'
        f'{EMPTY_STATE if not posts else ""}'
        f'{"".join(items)}'
        '<div class="list-pagination">'
        f'<span class="list-pagination-previous">{previous_link}</span>'
        f'<span class="list-pagination-next">{next_link}</span>'
        "</div></div>"
    )


def archive_template(data: dict) -> str:
    posts: Sequence[PostSummary] = data["posts"]
    rows = "".join(
        '<div class="archive-list-post">'
        f'<a href="{html.escape(post.url, quote=True)}">'
        f'<span class="archive-list-post-title">{html.escape(post.title)}</span>'
        f'<span class="archive-list-post-date"><time>| {html.escape(post.date)}</time></span>'
        "</a></div>"
        for post in posts
    )
    return (
        '<div class="page">'
        f'<div class="page-title">{html.escape(data["page"]["title"])}</div>'
        '<div class="archive"><div class="archive-list">'
        f'{EMPTY_STATE if not posts else ""}'
        f"{rows}"
        "</div></div></div>"
    )


def build_head(site: SiteConfig, seo: dict) -> str:
    title = html.escape(seo["title"], quote=True)
    description = html.escape(seo.get("description") or "", quote=True)
    url = html.escape(seo["url"], quote=True)
    parts = [
        f"<title>{title}</title>",
        f'<meta property="og:title" content="{title}">',
        '<meta property="og:locale" content="en_US">',
        f'<meta name="description" content="{description}">',
        f'<meta property="og:description" content="{description}">',
        f'<link rel="canonical" href="{url}">',
        f'<meta property="og:url" content="{url}">',
        f'<meta property="og:site_name" content="{html.escape(site.name, quote=True)}">',
    ]
    if seo.get("next"):
        parts.append(f'<link rel="next" href="{html.escape(seo["next"], quote=True)}">')
    if seo.get("is_article"):
        parts.append('<meta property="og:type" content="article">')
        parts.append(
            f'<meta property="article:published_time" content="{html.escape(seo.get("publish_time", ""), quote=True)}">'
        )
    parts.append('<meta name="twitter:card" content="summary">')
    parts.append(f'<meta property="twitter:title" content="{title}">')
    return "\n  ".join(parts)


def build_footer(site: SiteConfig) -> str:
    links = ['<a href="/archive" aria-label="Read more about all archives"><i class="fa fa-archive" aria-hidden="true"></i></a>']
    author = site.author
    if author.twitter:
        links.append(
            f'<a target="_blank" href="https://twitter.com/{html.escape(author.twitter, quote=True)}" '
            'aria-label="Read more on twitter"><i class="fa fa-twitter" aria-hidden="true"></i></a>'
        )
    if author.github:
        links.append(
            f'<a target="_blank" href="https://github.com/{html.escape(author.github, quote=True)}" '
            'aria-label="Read more on github"><i class="fa fa-github" aria-hidden="true"></i></a>'
        )
    if author.email:
        links.append(
            f'<a target="_blank" href="mailto:{html.escape(author.email, quote=True)}" '
            'aria-label="Email"><i class="fa fa-envelope" aria-hidden="true"></i></a>'
        )
    return (
        '<div class="footer"><hr>'
        f'<div class="footer-link">{"".join(links)}</div>'
        f"&copy;{html.escape(site.copyright)}. All rights reserved."
        "</div>"
    )


class PageRenderer:
    """Places page bodies inside the site layout with the right SEO envelope."""

    def __init__(self, config: SiteConfig, layout: Optional[str] = None, minify: bool = False):
        self.config = config
        self.layout = layout if layout is not None else read_template(config.templates / "layout.html")
        self.minify = minify

    def render_page(self, page_template: PageTemplate, page_data: dict, layout_data: dict) -> str:
        content = page_template(page_data)
        site = layout_data.get("site", self.config)
        document = render_template(
            self.layout,
            head=build_head(site, layout_data["seo"]),
            footer=build_footer(site),
            content=content,
        )
        return minify_html(document) if self.minify else document

    def render_post(self, post: Post, content: str) -> str:
        config = self.config
        return self.render_page(
            post_template,
            {
                "page": {"title": post.title, "tags": post.tags, "date": post.display_date},
                "content": content,
            },
            {
                "site": config,
                "seo": {
                    "title": f"{post.title} | {config.domain}",
                    "description": post.description,
                    "url": config.url(post.permalink),
                    "is_article": True,
                    "publish_time": post.publish_time,
                },
            },
        )

    def render_listing(self, page: Page) -> str:
        config = self.config
        next_url = config.url(page.next_path) if page.next_path else ""
        return self.render_page(
            list_template,
            {
                "site": config,
                "paginator": {
                    "posts": page.posts,
                    "previous_path": page.previous_path,
                    "next_path": page.next_path,
                },
            },
            {
                "site": config,
                "seo": {
                    "title": config.name,
                    "description": config.name,
                    "url": config.domain,
                    "is_article": False,
                    "next": next_url,
                },
            },
        )

    def render_archive(self, summaries: Sequence[PostSummary]) -> str:
        config = self.config
        return self.render_page(
            archive_template,
            {"site": config, "posts": summaries, "page": {"title": "Archive"}},
            {
                "site": config,
                "seo": {
                    "title": config.name,
                    "description": config.name,
                    "url": config.url("/archive"),
                    "is_article": False,
                },
            },
        )
