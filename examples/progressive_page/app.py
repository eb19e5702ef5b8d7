"""Progressive page -- a real HTTP server streaming a layout, a view and partials.

The layout flushes right after ``<head>``, so the browser can fetch the
stylesheet while the post list is still rendering. The list itself is a
Python template that flushes after every row. ``/plain`` renders the same
page buffered, and ``/feed.json`` is a raw JSON body that is never streamed.

Run:
    python app.py
    curl --raw -N http://127.0.0.1:8000/
"""

import logging
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from urllib.parse import urlparse

from pagestream import Controller, Environment, FileSystemLoader, Request, TransportError

logger = logging.getLogger(__name__)

templates_dir = Path(__file__).parent / "templates"
env = Environment(loader=FileSystemLoader(templates_dir))

POSTS = [
    {"slug": "chunked", "title": "Chunked transfer encoding", "author": "ada"},
    {"slug": "flush", "title": "When to flush", "author": "lin"},
    {"slug": "padding", "title": "Why browsers wait for 1KB", "author": "sam"},
]


def post_list(out, scope):
    for post in scope["posts"]:
        out.render(partial="posts/_row.html", locals={"post": post})
        out.flush()


env.add_template("posts/_list", post_list)


class PostsController(Controller):
    env = env
    view_prefix = "posts"
    view_suffix = ".html"

    def index(self):
        self.assigns["title"] = "Recent posts"
        self.assigns["posts"] = POSTS
        self.assigns["total"] = len(POSTS)

    def plain(self):
        self.index()
        self.render(action="index", progressive=False)

    def feed(self):
        self.render(json=[post["slug"] for post in POSTS])


PostsController.layout("layout.html", progressive=True, except_=["feed"])


@PostsController.when_streaming_template
def mark_streaming(controller):
    controller.response.set_header("X-Rendering", "progressive")


ROUTES = {"/": "index", "/plain": "plain", "/feed.json": "feed"}


class PostsHandler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"

    def do_GET(self) -> None:  # noqa: N802
        action = ROUTES.get(urlparse(self.path).path)
        if action is None:
            self.send_error(HTTPStatus.NOT_FOUND)
            return
        request = Request(method="GET", path=self.path, headers=dict(self.headers.items()))
        try:
            PostsController.dispatch(action, request, self.wfile)
        except TransportError:
            logger.info("client went away during %s", self.path)
            self.close_connection = True

    def log_message(self, format, *args):  # noqa: A002
        logger.debug(format, *args)


def main(port: int = 8000) -> None:
    logging.basicConfig(level=logging.DEBUG)
    server = ThreadingHTTPServer(("127.0.0.1", port), PostsHandler)
    print(f"Serving on http://127.0.0.1:{port}/")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()


if __name__ == "__main__":
    main()
