#!/usr/bin/env python3
"""
A small markdown blog: posts, a post index and shared layout templates.
"""

import json
import math
import os
import re
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from html import escape
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Protocol
from urllib.parse import quote

import click
import markdown
import requests
from bs4 import BeautifulSoup
from flask import Flask, abort, render_template_string, request
from werkzeug.middleware.proxy_fix import ProxyFix

################################################################################
# Imports & constants
################################################################################

ROOT = Path(__file__).parent
ENV_FILE = ROOT / ".env"
SITE_DIR_DEFAULT = ROOT / "site"

BLOG_ENV_KEYS = (
    "BLOG_CONTENT_URL",
    "BLOG_CONTENT_DIR",
    "BLOG_SITE_NAME",
    "BLOG_SITE_URL",
    "BLOG_AUTHOR",
    "BLOG_POSTS_LIMIT",
    "BLOG_FETCH_TIMEOUT",
)
SITE_NAME_DFLT = "BerozgaarCoder"
AUTHOR_DFLT = "Aniket Maithani"
POSTS_LIMIT_DFLT = 5
FETCH_TIMEOUT_DFLT = 10.0
WORDS_PER_MINUTE = 200

POSTS_INDEX_PATH = "/posts.json"
POST_PATH_TMPL = "/content/blog/{slug}.md"
TEMPLATE_PATH_TMPL = "/templates/{name}.html"
LAYOUT_TEMPLATES = ("header", "footer")
PAGE_TEMPLATES = ("blog-post", "index", "posts")
COMMON_TEMPLATES = LAYOUT_TEMPLATES + PAGE_TEMPLATES

POST_ERROR_MESSAGE = "Failed to load blog post"
POSTS_SECTION = "/posts/"

# `---` line, header, `---` line, body (verbatim, leading blank lines kept)
FRONTMATTER_RE = re.compile(r"\A---[^\S\n]*\n(.*?)\n---[^\S\n]*\n(.*)\Z", re.S)

IMAGE_KEYWORDS = {
    "invoice-automation": "python code laptop automation",
    "anxiety-journey": "peaceful meditation mindfulness calm",
    "recovery-journey": "sunrise hope healing recovery",
    "progress-update": "progress growth career success",
    "default": "coding developer workspace",
}
IMAGE_URL_TMPL = "https://source.unsplash.com/1200x600/?{keyword}"

SHARE_URL_TMPLS = {
    "twitter": "https://twitter.com/intent/tweet?text={title}&url={url}",
    "linkedin": "https://www.linkedin.com/shareArticle?mini=true&url={url}&title={title}",
    "facebook": "https://www.facebook.com/sharer/sharer.php?u={url}",
}

# selectors the page templates have to provide
SLOTS = {
    "title": ".post-title",
    "image": ".post-featured-image",
    "date": ".post-date",
    "author": ".post-author",
    "reading_time": ".reading-time-value",
    "content": "#post-content",
    "tags": "#post-tags",
    "share_buttons": ".share-btn[data-platform]",
    "header": "#site-header",
    "footer": "#site-footer",
    "year": ".current-year",
    "nav_links": ".main-nav a",
    "latest_posts": "#latest-posts-container",
}

MD_EXTENSION_CONFIGS = {
    "pymdownx.highlight": {
        "guess_lang": False,
        "noclasses": True,
        "pygments_style": "monokai",
    },
}
BASE_MD_EXTENSIONS = [
    "pymdownx.extra",
    "pymdownx.magiclink",
    "pymdownx.tilde",
    "pymdownx.tasklist",
    "pymdownx.superfences",
    "pymdownx.highlight",
    "pymdownx.betterem",
    "pymdownx.saneheaders",
]

try:
    __version__ = version("berozgaar")
except PackageNotFoundError:
    __version__ = "0.1.0-dev"


# -------------------------------------------------------------------------
# Settings (.env next to the package, process env wins)
# -------------------------------------------------------------------------
def _read_env_file() -> dict[str, str]:
    env = {}
    if not ENV_FILE.exists():
        return env
    for ln in ENV_FILE.read_text().splitlines():
        ln = ln.strip()
        if not ln or ln.startswith("#") or "=" not in ln:
            continue
        k, v = ln.split("=", 1)
        env[k.strip()] = v.strip()
    return env


def blog_config() -> dict[str, str]:
    env_file = _read_env_file()
    cfg = {k: (os.environ.get(k) or env_file.get(k) or "").strip() for k in BLOG_ENV_KEYS}
    return {k: v for k, v in cfg.items() if v}


################################################################################
# App
################################################################################
app = Flask(__name__)
app.url_map.strict_slashes = False

_cfg = blog_config()
app.config.update(
    CONTENT_URL=_cfg.get("BLOG_CONTENT_URL", ""),
    CONTENT_DIR=_cfg.get("BLOG_CONTENT_DIR", str(SITE_DIR_DEFAULT)),
    SITE_NAME=_cfg.get("BLOG_SITE_NAME", SITE_NAME_DFLT),
    SITE_URL=_cfg.get("BLOG_SITE_URL", ""),
    AUTHOR=_cfg.get("BLOG_AUTHOR", AUTHOR_DFLT),
    POSTS_LIMIT=int(_cfg.get("BLOG_POSTS_LIMIT", POSTS_LIMIT_DFLT)),
    FETCH_TIMEOUT=float(_cfg.get("BLOG_FETCH_TIMEOUT", FETCH_TIMEOUT_DFLT)),
)
app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)


def utc_now() -> datetime:
    """Return an *aware* datetime in UTC."""
    return datetime.now(timezone.utc)


###############################################################################
# Errors
###############################################################################
class BlogError(Exception):
    """Base class for everything the renderers know how to recover from."""


class FetchError(BlogError):
    """Transport failure or a non-success status while fetching content."""

    def __init__(self, message: str, *, status: int | None = None):
        super().__init__(message)
        self.status = status


class NotFound(FetchError):
    pass


class TemplateLoadFailure(BlogError):
    pass


class MalformedIndex(BlogError):
    pass


class MissingElement(BlogError):
    pass


@dataclass(frozen=True)
class RenderOutcome:
    """What a renderer did, so the caller can pick a status code."""

    ok: bool = True
    error: Exception | None = None
    skipped: bool = False
    count: int = 0

    @property
    def not_found(self) -> bool:
        return isinstance(self.error, NotFound)

    @property
    def status(self) -> int:
        if self.ok:
            return 200
        if self.not_found:
            return 404
        return 502 if isinstance(self.error, FetchError) else 500


###############################################################################
# Content sources
###############################################################################
class ContentSource(Protocol):
    def fetch_text(self, path: str) -> str: ...


class HttpSource:
    """Fetch site-relative paths from an HTTP origin."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = FETCH_TIMEOUT_DFLT,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        """The given session, else one per thread."""
        if self._session is not None:
            return self._session
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._local.session = requests.Session()
        return session

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{quote(path.lstrip('/'), safe='/')}"

    def fetch_text(self, path: str) -> str:
        url = self.url_for(path)
        try:
            resp = self.session.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            if status == 404:
                raise NotFound(f"{url} not found", status=status) from None
            raise FetchError(f"Cannot fetch {url} – HTTP {status}", status=status) from None
        except requests.RequestException as exc:
            raise FetchError(f"Cannot fetch {url} – {exc}") from None

        # markdown/html served without a charset would decode as latin-1
        if "charset" not in resp.headers.get("Content-Type", "").lower():
            resp.encoding = "utf-8"
        return resp.text


class DirectorySource:
    """Read site-relative paths from a local site directory."""

    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()

    def fetch_text(self, path: str) -> str:
        try:
            target = (self.root / path.lstrip("/")).resolve()
            found = target.is_relative_to(self.root) and target.is_file()
        except (OSError, ValueError):
            # over-long names, NUL bytes
            found = False
        if not found:
            raise NotFound(f"{path} not found", status=404)
        try:
            return target.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise FetchError(f"Cannot read {path} – {exc}") from None


def source_from_config(config: Mapping) -> ContentSource:
    if config.get("CONTENT_URL"):
        return HttpSource(
            config["CONTENT_URL"],
            timeout=config.get("FETCH_TIMEOUT", FETCH_TIMEOUT_DFLT),
        )
    return DirectorySource(config.get("CONTENT_DIR") or SITE_DIR_DEFAULT)


def post_locator(slug: str) -> str:
    return POST_PATH_TMPL.format(slug=slug)


def template_locator(name: str) -> str:
    return TEMPLATE_PATH_TMPL.format(name=name)


###############################################################################
# Frontmatter
###############################################################################
@dataclass(frozen=True)
class Document:
    meta: Mapping[str, object]
    content: str


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def parse_frontmatter(text: str) -> Document:
    """
    Split *text* into its `---` header and body.

    • `key: value` lines become string entries (first colon splits,
      one pair of matching quotes is dropped, nothing is coerced).
    • `tags:` opens a list; every later line starting with `-` is
      appended to it, wherever it appears in the header.
    • No header (or an unterminated one) → empty meta, body untouched.
    """
    m = FRONTMATTER_RE.match(text)
    if not m:
        return Document(MappingProxyType({}), text)

    header, content = m.group(1), m.group(2)
    meta: dict[str, object] = {}
    for ln in header.split("\n"):
        stripped = ln.strip()
        if stripped.startswith("-"):
            if "tags" in meta:
                meta["tags"].append(stripped[1:].strip())
            continue

        key, sep, value = ln.partition(":")
        if not sep:
            continue
        key = key.strip()
        if key == "tags":
            meta["tags"] = []
        else:
            meta[key] = _unquote(value.strip())

    return Document(MappingProxyType(meta), content)


###############################################################################
# Page view
###############################################################################
def _fragment(html: str) -> list:
    return list(BeautifulSoup(html or "", "html.parser").contents)


class PageView:
    """
    An HTML page with named slots (see SLOTS).

    Every setter returns False instead of failing when the page does not
    provide the slot; `require` is for slots an operation cannot do without.
    """

    def __init__(self, html: str, *, path: str = "/", url: str = ""):
        self.soup = BeautifulSoup(html, "html.parser")
        self.path = path
        self.url = url

    def slot(self, name: str):
        return self.soup.select_one(SLOTS[name])

    def slots(self, name: str) -> list:
        return self.soup.select(SLOTS[name])

    def require(self, name: str):
        el = self.slot(name)
        if el is None:
            raise MissingElement(f"page has no {SLOTS[name]} element")
        return el

    def set_text(self, name: str, text: str | None) -> bool:
        el = self.slot(name)
        if el is None:
            return False
        el.string = text or ""
        return True

    def set_attrs(self, name: str, **attrs: str | None) -> bool:
        el = self.slot(name)
        if el is None:
            return False
        for k, v in attrs.items():
            el[k] = v or ""
        return True

    def set_html(self, name: str, html: str) -> bool:
        el = self.slot(name)
        if el is None:
            return False
        el.clear()
        for node in _fragment(html):
            el.append(node)
        return True

    def replace_html(self, name: str, html: str) -> bool:
        """Swap the whole element (outer HTML) for *html*."""
        el = self.slot(name)
        if el is None:
            return False
        el.replace_with(*_fragment(html))
        return True

    def _head(self):
        return self.soup.head or self.soup

    def set_title(self, text: str) -> None:
        if self.soup.title is None:
            self._head().append(self.soup.new_tag("title"))
        self.soup.title.string = text

    def set_meta(self, key: str, content: str | None, attr: str = "name") -> None:
        """Update `<meta {attr}="{key}">` in place, creating it when absent."""
        el = self.soup.find("meta", attrs={attr: key})
        if el is None:
            el = self.soup.new_tag("meta", attrs={attr: key})
            self._head().append(el)
        el["content"] = content or ""

    def html(self) -> str:
        return str(self.soup)


###############################################################################
# Template engine
###############################################################################
class TemplateEngine:
    """Named HTML templates, fetched once and kept in `templates`."""

    def __init__(self, source: ContentSource, cache: dict[str, str] | None = None):
        self.source = source
        self.templates = {} if cache is None else cache

    def load_template(self, name: str, locator: str) -> str:
        if name in self.templates:
            return self.templates[name]
        try:
            body = self.source.fetch_text(locator)
        except FetchError as exc:
            app.logger.warning("Error loading template %s: %s", name, exc)
            raise TemplateLoadFailure(f"Failed to load template: {locator}") from exc
        self.templates[name] = body
        return body

    def load_common_templates(self, names=COMMON_TEMPLATES) -> dict[str, str]:
        """Fetch every missing template in parallel; failures stay absent."""
        missing = [n for n in names if n not in self.templates]
        if missing:

            def _load(name):
                try:
                    return self.load_template(name, template_locator(name))
                except TemplateLoadFailure:
                    return None

            with ThreadPoolExecutor(max_workers=len(missing)) as pool:
                list(pool.map(_load, missing))
        return {n: self.templates[n] for n in names if n in self.templates}

    @staticmethod
    def render(template: str, data: Mapping[str, object]) -> str:
        """Replace each `{{key}}` of *data*; falsy values become ""."""
        result = template
        for key, value in data.items():
            result = result.replace("{{" + key + "}}", str(value) if value else "")
        return result

    def inject_layout(self, view: PageView, *, now: datetime | None = None) -> None:
        header = self.templates.get("header")
        footer = self.templates.get("footer")
        if header is not None:
            view.replace_html("header", header)
        if footer is not None:
            view.replace_html("footer", footer)
        view.set_text("year", str((now or utc_now()).year))
        self.update_active_nav(view)

    @staticmethod
    def update_active_nav(view: PageView) -> None:
        for link in view.slots("nav_links"):
            classes = [c for c in (link.get("class") or []) if c != "active"]
            href = link.get("href")
            if view.path == href or (href == POSTS_SECTION and POSTS_SECTION in view.path):
                classes.append("active")
            if classes:
                link["class"] = classes
            elif "class" in link.attrs:
                del link["class"]

    def clear(self) -> None:
        self.templates.clear()


###############################################################################
# Post index
###############################################################################
@dataclass(frozen=True)
class PostSummary:
    title: str = ""
    url: str = ""
    image: str = ""
    excerpt: str = ""
    date: str = ""
    datetime: str = ""
    published: bool = False

    @classmethod
    def from_dict(cls, raw) -> "PostSummary":
        if not isinstance(raw, dict):
            raise MalformedIndex(f"post entry is not an object: {raw!r}")
        fields = ("title", "url", "image", "excerpt", "date", "datetime")
        return cls(
            **{f: str(raw.get(f) or "") for f in fields},
            published=raw.get("published") is True,
        )

    @property
    def slug(self) -> str:
        return self.url.rstrip("/").rsplit("/", 1)[-1]


TEMPL_POST_CARD = """
<article class="post-card">
  <a href="{{ post.url }}" class="post-link">
    <div class="post-image">
      <img src="{{ post.image }}" alt="{{ post.title }}">
    </div>
    <div class="post-content">
      <h3 class="post-title">{{ post.title }}</h3>
      <time datetime="{{ post.datetime }}">{{ post.date }}</time>
      <p class="post-excerpt">{{ post.excerpt }}</p>
      <span class="read-more">Read More →</span>
    </div>
  </a>
</article>
"""

TEMPL_POSTS_ERROR = "<p>Unable to load posts at this time.</p>"


def render_post_card(post: PostSummary) -> str:
    return app.jinja_env.from_string(TEMPL_POST_CARD).render(post=post)


class PostIndexRenderer:
    def __init__(
        self,
        source: ContentSource,
        *,
        limit: int | None = POSTS_LIMIT_DFLT,
        index_path: str = POSTS_INDEX_PATH,
    ):
        self.source = source
        self.limit = limit
        self.index_path = index_path

    def fetch_posts(self) -> list[PostSummary]:
        raw = self.source.fetch_text(self.index_path)
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, RecursionError) as exc:
            raise MalformedIndex(f"{self.index_path} is not valid JSON – {exc}") from None
        posts = data.get("posts") if isinstance(data, dict) else None
        if not isinstance(posts, list):
            raise MalformedIndex(f"{self.index_path} has no 'posts' list")
        return [PostSummary.from_dict(p) for p in posts]

    def select_published(self, posts: list[PostSummary]) -> list[PostSummary]:
        published = [p for p in posts if p.published]
        return published if self.limit is None else published[: self.limit]

    def render_latest_posts(self, view: PageView) -> RenderOutcome:
        """
        Fill the posts container with one card per published post.
        Pages without the container are left alone.
        """
        if view.slot("latest_posts") is None:
            app.logger.debug("No %s on %s", SLOTS["latest_posts"], view.path)
            return RenderOutcome(skipped=True)

        try:
            posts = self.select_published(self.fetch_posts())
        except Exception as exc:
            app.logger.exception("Error loading posts")
            view.set_html("latest_posts", TEMPL_POSTS_ERROR)
            return RenderOutcome(ok=False, error=exc)

        view.set_html("latest_posts", "".join(render_post_card(p) for p in posts))
        return RenderOutcome(count=len(posts))


###############################################################################
# Post page
###############################################################################
def encode_uri_component(value: str | None) -> str:
    """Percent-encode like the browser's encodeURIComponent."""
    return quote(value or "", safe="!~*'()")


def featured_image_url(image_name: str | None) -> str:
    keyword = IMAGE_KEYWORDS.get(image_name or "default", IMAGE_KEYWORDS["default"])
    return IMAGE_URL_TMPL.format(keyword=encode_uri_component(keyword))


def reading_time(text: str) -> str:
    words = len(text.split())
    minutes = max(1, math.ceil(words / WORDS_PER_MINUTE))
    return f"{minutes} min read"


def share_urls(title: str | None, url: str | None) -> dict[str, str]:
    enc_title, enc_url = encode_uri_component(title), encode_uri_component(url)
    return {
        platform: tmpl.format(title=enc_title, url=enc_url)
        for platform, tmpl in SHARE_URL_TMPLS.items()
    }


def _markdown_renderer():
    return markdown.Markdown(
        extensions=BASE_MD_EXTENSIONS,
        extension_configs=MD_EXTENSION_CONFIGS,
    )


@dataclass(frozen=True)
class RenderedPost:
    slug: str
    document: Document
    featured_image: str
    html: str
    reading_time: str
    share_urls: dict[str, str] = field(default_factory=dict)
    page_url: str = ""

    @property
    def meta(self) -> Mapping[str, object]:
        return self.document.meta


TEMPL_POST_TAGS = """
<span>Tags:</span>
{% for tag in tags %}<a href="/tag/{{ tag|urlencode }}" class="post-tag">#{{ tag }}</a>{% if not loop.last %} {% endif %}{% endfor %}
"""

TEMPL_POST_ERROR = """
<div class="error-message">
  <h2>Oops!</h2>
  <p>{{ message }}</p>
  <p><a href="/posts/">← Back to all posts</a></p>
</div>
"""


class BlogRenderer:
    """Fetch one markdown post and write it into a post page."""

    def __init__(
        self,
        source: ContentSource,
        *,
        site_name: str = SITE_NAME_DFLT,
        default_author: str = AUTHOR_DFLT,
    ):
        self.source = source
        self.site_name = site_name
        self.default_author = default_author

    def markdown_to_html(self, text: str) -> str:
        # Markdown instances keep parser state; one per call, never shared
        return _markdown_renderer().convert(text)

    def fetch_markdown(self, slug: str) -> str:
        try:
            return self.source.fetch_text(post_locator(slug))
        except FetchError as exc:
            if exc.status is None:
                raise
            raise NotFound("Post not found", status=exc.status) from exc

    def build_post(self, slug: str, page_url: str = "") -> RenderedPost:
        doc = parse_frontmatter(self.fetch_markdown(slug))
        return RenderedPost(
            slug=slug,
            document=doc,
            featured_image=featured_image_url(doc.meta.get("featuredImage")),
            html=self.markdown_to_html(doc.content),
            reading_time=reading_time(doc.content),
            share_urls=share_urls(doc.meta.get("title"), page_url),
            page_url=page_url,
        )

    def inject_post(self, view: PageView, post: RenderedPost) -> None:
        meta = post.meta
        view.require("content")

        view.set_text("title", meta.get("title"))
        view.set_attrs(
            "image",
            src=post.featured_image,
            alt=meta.get("imageAlt") or meta.get("title"),
        )
        view.set_text("date", meta.get("date"))
        view.set_attrs("date", datetime=meta.get("datetime"))
        view.set_text("author", meta.get("author") or self.default_author)
        view.set_text("reading_time", post.reading_time)
        view.set_html("content", post.html)

        tags = meta.get("tags") or []
        tags_html = (
            app.jinja_env.from_string(TEMPL_POST_TAGS).render(tags=tags) if tags else ""
        )
        view.set_html("tags", tags_html)

        for btn in view.slots("share_buttons"):
            href = post.share_urls.get(btn.get("data-platform"))
            if href:
                btn["href"] = href

    def update_page_metadata(self, view: PageView, post: RenderedPost) -> None:
        title = post.meta.get("title") or ""
        description = post.meta.get("description")
        view.set_title(f"{title} | {self.site_name}")
        view.set_meta("description", description)
        view.set_meta("og:title", title, "property")
        view.set_meta("og:description", description, "property")
        view.set_meta("og:image", post.featured_image, "property")
        view.set_meta("og:url", post.page_url, "property")
        view.set_meta("twitter:title", title)
        view.set_meta("twitter:description", description)
        view.set_meta("twitter:image", post.featured_image)

    def render_post(
        self, slug: str, view: PageView, page_url: str | None = None
    ) -> RenderOutcome:
        """
        Whole post pipeline behind one failure boundary.
        Updates made before a failure stay on the page.
        """
        try:
            post = self.build_post(slug, page_url if page_url is not None else view.url)
            self.inject_post(view, post)
            self.update_page_metadata(view, post)
        except Exception as exc:
            app.logger.exception("Error rendering post %s", slug)
            self.show_error(view, POST_ERROR_MESSAGE)
            return RenderOutcome(ok=False, error=exc)
        return RenderOutcome()

    @staticmethod
    def show_error(view: PageView, message: str) -> None:
        view.set_html(
            "content", app.jinja_env.from_string(TEMPL_POST_ERROR).render(message=message)
        )


###############################################################################
# Site wiring
###############################################################################
@dataclass
class Site:
    source: ContentSource
    templates: TemplateEngine
    latest: PostIndexRenderer
    archive: PostIndexRenderer
    blog: BlogRenderer


def build_site(config: Mapping) -> Site:
    source = source_from_config(config)
    return Site(
        source=source,
        templates=TemplateEngine(source, cache={}),
        latest=PostIndexRenderer(source, limit=config.get("POSTS_LIMIT", POSTS_LIMIT_DFLT)),
        archive=PostIndexRenderer(source, limit=None),
        blog=BlogRenderer(
            source,
            site_name=config.get("SITE_NAME", SITE_NAME_DFLT),
            default_author=config.get("AUTHOR", AUTHOR_DFLT),
        ),
    )


def get_site() -> Site:
    site = app.extensions.get("berozgaar")
    if site is None:
        site = app.extensions["berozgaar"] = build_site(app.config)
    return site


def reset_site() -> None:
    """Forget the wired objects (after changing app.config)."""
    app.extensions.pop("berozgaar", None)


@app.before_request
def _fresh_templates():
    # a debug reload should pick up edited templates
    if app.debug:
        get_site().templates.clear()


def page_view(shell: str, *, path: str, url: str = "", **data) -> PageView:
    """Load page template *shell*, fill its placeholders, add header/footer."""
    engine = get_site().templates
    engine.load_common_templates()
    try:
        body = engine.load_template(shell, template_locator(shell))
    except TemplateLoadFailure:
        app.logger.exception("Page template %s unavailable", shell)
        abort(500)

    html = engine.render(
        body,
        {
            "site_name": app.config["SITE_NAME"],
            "year": utc_now().year,
            "version": __version__,
            **data,
        },
    )
    view = PageView(html, path=path, url=url)
    engine.inject_layout(view)
    return view


###############################################################################
# Views
###############################################################################
@app.route("/")
def index():
    view = page_view("index", path=request.path, url=request.url)
    get_site().latest.render_latest_posts(view)
    return view.html()


@app.route("/posts/")
def posts():
    view = page_view("posts", path=request.path, url=request.url)
    get_site().archive.render_latest_posts(view)
    return view.html()


@app.route("/posts/<slug>/")
def post_detail(slug):
    view = page_view("blog-post", path=request.path, url=request.url, slug=escape(slug))
    outcome = get_site().blog.render_post(slug, view, page_url=request.url)
    return view.html(), outcome.status


###############################################################################
# CLI – render + static export
###############################################################################
def export_site(outdir: Path, *, base_url: str = "") -> list[Path]:
    """Write the home page, the archive and every published post below *outdir*."""
    pages = {"index.html": "/", "posts/index.html": POSTS_SECTION}
    archive = get_site().archive
    for post in archive.select_published(archive.fetch_posts()):
        pages[f"posts/{post.slug}/index.html"] = f"{POSTS_SECTION}{post.slug}/"

    written = []
    client = app.test_client()
    for rel, path in pages.items():
        resp = client.get(path, base_url=base_url or None)
        if resp.status_code != 200:
            click.secho(f"⚠️  {path} → HTTP {resp.status_code}, skipped", fg="yellow")
            continue
        target = outdir / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(resp.get_data(as_text=True), encoding="utf-8")
        written.append(target)
    return written


@app.cli.command("render")
@click.argument("slug")
@click.option("--base-url", default="", help="Site URL used for share links")
def cli_render(slug: str, base_url: str):
    """Print one rendered post page."""
    resp = app.test_client().get(
        f"{POSTS_SECTION}{slug}/", base_url=base_url or app.config["SITE_URL"] or None
    )
    click.echo(resp.get_data(as_text=True))
    if resp.status_code != 200:
        click.secho(f"Post {slug!r} could not be rendered.", fg="red", err=True)
        raise SystemExit(1)


@app.cli.command("build")
@click.argument("outdir", type=click.Path(file_okay=False, path_type=Path))
@click.option("--base-url", default="", help="Site URL used for share links")
def cli_build(outdir: Path, base_url: str):
    """Export the site as static HTML."""
    try:
        written = export_site(outdir, base_url=base_url or app.config["SITE_URL"])
    except BlogError as exc:
        raise click.ClickException(f"Cannot read the post index – {exc}") from None
    click.secho(f"\n✅  Wrote {len(written)} pages to {outdir}", fg="green")


###############################################################################
# Error pages
###############################################################################
TEMPL_ERROR = """<!doctype html>
<html lang="en">
<title>{{ heading }} | {{ site_name }}</title>
<meta charset="utf-8">
<body>
  <main>
    <h2>{{ heading }}</h2>
    <p>{{ message }}</p>
    <p><a href="/">Back to the front page</a></p>
  </main>
</body>
</html>
"""


@app.errorhandler(404)
def not_found(exc):
    """Site-wide “Not Found” page."""
    return render_template_string(
        TEMPL_ERROR,
        heading="Page not found",
        message="The URL you asked for doesn’t exist.",
        site_name=app.config["SITE_NAME"],
    ), 404


@app.errorhandler(500)
def internal_error(exc):
    return render_template_string(
        TEMPL_ERROR,
        heading="Internal Server Error",
        message="Our fault, not yours. Please try again in a minute.",
        site_name=app.config["SITE_NAME"],
    ), 500


###############################################################################
# main
###############################################################################
if __name__ == "__main__":
    app.run(debug=True)
