"""Hello World -- the simplest pagestream example.

Parse a template from a string and render it in isolation. Flushes are
inert outside a progressive response, so the same template works both ways.

Run:
    python app.py
"""

from pagestream import Environment

env = Environment()

template = env.from_string("<h1>Hello, {{ name }}!</h1>{% flush %}<p>{{ note }}</p>")

output = template.render_string(name="World", note="<rendered in one piece>")


def main() -> None:
    print(output)
    print()

    for name in ["pagestream", "chunked", "HTTP"]:
        print(template.render_string(name=name, note=""))


if __name__ == "__main__":
    main()
