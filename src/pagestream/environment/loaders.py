"""Where view source comes from.

A loader maps a view name such as ``"posts/index"`` to its source text and,
when there is one, the file it was read from. The Environment asks its
loader once per name and caches the parsed result.

- ``FileSystemLoader``: view directories on disk, optionally trying a list
  of extensions (``posts/index`` → ``posts/index.html``)
- ``DictLoader``: views held in memory, for tests and single-file apps
- ``ChoiceLoader``: several loaders in priority order, e.g. application
  views shadowing a shared theme

Anything with a matching ``get_source`` method can be used as a loader.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from difflib import get_close_matches
from pathlib import Path, PurePosixPath
from typing import Protocol

from pagestream.environment.exceptions import TemplateNotFoundError


class Loader(Protocol):
    def get_source(self, name: str) -> tuple[str, str | None]: ...


def _not_found(name: str, known: Iterable[str], where: str = "") -> TemplateNotFoundError:
    message = f"Template '{name}' not found"
    if where:
        message += f" in: {where}"
    candidates = sorted(known)
    suggestion = get_close_matches(name, candidates, n=1, cutoff=0.6)
    if suggestion:
        message += f". Did you mean '{suggestion[0]}'?"
    elif candidates:
        message += f". Available: {', '.join(candidates[:10])}"
    return TemplateNotFoundError(message)


class FileSystemLoader:
    """Read views from one or more directories, first hit wins.

    Names are always ``/``-separated and may not climb out of a view
    directory with ``..``.

    Example:
            >>> loader = FileSystemLoader(["app/views", "theme/views"], extensions=[".html"])
            >>> source, filename = loader.get_source("layouts/application")
    """

    __slots__ = ("_directories", "_encoding", "_extensions")

    def __init__(
        self,
        directories: str | Path | Sequence[str | Path],
        *,
        extensions: Sequence[str] = (),
        encoding: str = "utf-8",
    ):
        if isinstance(directories, (str, Path)):
            directories = [directories]
        self._directories = tuple(Path(d) for d in directories)
        self._extensions = ("", *extensions)
        self._encoding = encoding

    def get_source(self, name: str) -> tuple[str, str]:
        relative = PurePosixPath(name)
        if relative.is_absolute() or ".." in relative.parts:
            raise TemplateNotFoundError(f"Template '{name}' is outside the view directories")

        for directory in self._directories:
            for extension in self._extensions:
                candidate = directory.joinpath(*relative.parts).with_name(relative.name + extension)
                if candidate.is_file():
                    return candidate.read_text(self._encoding), str(candidate)

        raise _not_found(name, (), ", ".join(str(d) for d in self._directories))


class DictLoader:
    """Serve views from a mapping of name to source.

    The mapping is read on every lookup, so later additions are visible
    (subject to the Environment cache).

    Example:
            >>> loader = DictLoader({
            ...     "layout": "<html>{% flush %}{% yield %}</html>",
            ...     "index": "Hi",
            ... })
    """

    __slots__ = ("_views",)

    def __init__(self, views: Mapping[str, str]):
        self._views = views

    def get_source(self, name: str) -> tuple[str, None]:
        try:
            return self._views[name], None
        except KeyError:
            raise _not_found(name, self._views) from None


class ChoiceLoader:
    """Ask each loader in turn and return the first source found.

    Example:
            >>> loader = ChoiceLoader([
            ...     DictLoader({"layout": "<main>{% yield %}</main>"}),
            ...     FileSystemLoader("views/"),
            ... ])
    """

    __slots__ = ("_loaders",)

    def __init__(self, loaders: Sequence[Loader]):
        self._loaders = tuple(loaders)

    def get_source(self, name: str) -> tuple[str, str | None]:
        misses = []
        for loader in self._loaders:
            try:
                return loader.get_source(name)
            except TemplateNotFoundError as exc:
                misses.append(exc)
        raise TemplateNotFoundError(
            f"Template '{name}' not found in any of {len(self._loaders)} loaders"
        ) from (misses[-1] if misses else None)
