"""Shared hypothesis strategies for pagestream property-based testing.

Generates structurally valid documents built from plain text, flushes,
pushes and nested ``{% render layout=... %}`` blocks, plus a fixed set of
layouts those blocks can wrap themselves in.
"""

from __future__ import annotations

from hypothesis import strategies as st

# Text with no template delimiters
plain_text = st.text(
    alphabet=st.characters(
        exclude_categories=("Cs",),
        exclude_characters="{}%#\x00",
    ),
    min_size=1,
    max_size=20,
)

FLUSH = "{% flush %}"

# Layouts that nested blocks render inside; each flushes at least once
LAYOUTS = {
    "wrap": "<wrap>{% flush %}{% yield %}</wrap>",
    "late": "<late>{% yield %}{% flush %}</late>",
    "quiet": "({% yield %})",
}

_leaf = st.one_of(plain_text, st.just(FLUSH))


def _nest(children: st.SearchStrategy[str]) -> st.SearchStrategy[str]:
    block = st.tuples(st.sampled_from(sorted(LAYOUTS)), children).map(
        lambda pair: f'{{% render layout="{pair[0]}" %}}{pair[1]}{{% end %}}'
    )
    return st.lists(st.one_of(children, block), min_size=1, max_size=4).map("".join)


# A whole view: text and flushes, nested up to a few render blocks deep
document = st.recursive(_leaf, _nest, max_leaves=25)

# Push payloads start with "#", which plain_text never contains
push_payload = st.text(alphabet="abcxyz0123456789<>/ ", max_size=10).map(lambda s: "#" + s)
