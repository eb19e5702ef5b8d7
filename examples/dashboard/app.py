"""Dashboard -- Python templates, push() and render_to_string().

Every template here is a plain Python function taking ``(out, scope)``.
The layout pushes an early ``<script>`` chunk that must reach the browser
before anything else, then streams each widget as soon as it is ready.
A summary is rendered to a string first, so its flushes never reach the
client and it can be embedded anywhere.

Run:
    python app.py
"""

import io
import time

from pagestream import Controller, Environment, Request

env = Environment()

WIDGETS = [
    ("cpu", "CPU", "42%"),
    ("mem", "Memory", "3.1 GB"),
    ("disk", "Disk", "71%"),
]


def layout(out, scope):
    out.push('<script src="/static/boot.js" async></script>')
    out.write(f"<!DOCTYPE html><html><head><title>{scope['title']}</title></head>")
    out.flush()
    out.write("<body>")
    out.yield_content()
    out.write("</body></html>")


def widget(out, scope):
    key, label, value = scope["widget"]
    time.sleep(scope.get("delay", 0))
    out.write(f'<section id="{key}"><h2>{label}</h2><p>{value}</p></section>')


def summary(out, scope):
    out.write(f"{len(scope['widgets'])} widgets")
    out.flush()


def dashboard(out, scope):
    out.write(f"<header>{scope['summary']}</header>")
    for item in scope["widgets"]:
        out.render(partial="widget", locals={"widget": item})
        out.flush()


env.add_template("layout", layout)
env.add_template("widget", widget)
env.add_template("summary", summary)
env.add_template("dashboard/show", dashboard)


class DashboardController(Controller):
    env = env
    view_prefix = "dashboard"

    def show(self):
        self.assigns["title"] = "Status"
        self.assigns["widgets"] = WIDGETS
        self.assigns["summary"] = self.render_to_string(partial="summary")


DashboardController.layout("layout", progressive=True)


def render_dashboard(user_agent: str | None = None) -> bytes:
    buffer = io.BytesIO()
    headers = {"User-Agent": user_agent} if user_agent else {}
    DashboardController.dispatch("show", Request(path="/dashboard", headers=headers), buffer)
    return buffer.getvalue()


raw = render_dashboard()


def main() -> None:
    head, _, body = raw.partition(b"\r\n\r\n")
    print(head.decode("latin-1"))
    print()
    print(body.decode("utf-8"))


if __name__ == "__main__":
    main()
