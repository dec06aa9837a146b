"""Markdown rendering with server-routable links.

Uses markdown-it-py with the typographer (smart quotes, dashes, ellipses),
linkify and the GFM table/strikethrough rules, plus footnote and task list
plugins. Relative link and image targets are rewritten to ``/md/`` and
``/files/`` routes, and the result is wrapped in a complete HTML page with an
optional reload script.
"""

import logging
from pathlib import Path

from markdown_it import MarkdownIt
from markdown_it.rules_core import StateCore
from mdit_py_plugins.attrs.parse import ParseError, parse
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.tasklists import tasklists_plugin

from mdview.core.links import rewrite_link
from mdview.core.template import LIVE_RELOAD_SCRIPT, build_page, refresh_script

logger = logging.getLogger(__name__)


def create_markdown() -> MarkdownIt:
    """Create the Markdown parser used for every document.

    Link targets are resolved from the ``source_path`` and ``root_dir`` keys
    of the render env.
    """
    md = (
        MarkdownIt(
            "commonmark",
            {"html": True, "linkify": True, "typographer": True},
        )
        .enable(["table", "strikethrough", "linkify", "replacements", "smartquotes"])
        .use(footnote_plugin)
        .use(tasklists_plugin)
    )
    # Before the typographer, so quoted attribute values stay straight
    md.core.ruler.after("inline", "heading_attrs", heading_attrs_rule)

    def render_link_open(self, tokens, idx, options, env):
        token = tokens[idx]
        href = token.attrGet("href")
        if href is not None:
            token.attrSet("href", rewrite_link(str(href), env["source_path"], env["root_dir"]))
        return self.renderToken(tokens, idx, options, env)

    def render_image(self, tokens, idx, options, env):
        token = tokens[idx]
        src = token.attrGet("src")
        if src is not None:
            token.attrSet("src", rewrite_link(str(src), env["source_path"], env["root_dir"]))
        return self.image(tokens, idx, options, env)

    md.add_render_rule("link_open", render_link_open)
    md.add_render_rule("image", render_image)
    return md


def heading_attrs_rule(state: StateCore) -> None:
    """Move a trailing ``{#id .class key=value}`` block onto its heading.

    Blocks that don't parse as attributes are left in the heading text.
    """
    tokens = state.tokens
    for i, token in enumerate(tokens[:-1]):
        if token.type != "heading_open":
            continue
        inline = tokens[i + 1]
        if not inline.children or inline.children[-1].type != "text":
            continue

        text = inline.children[-1]
        content = text.content.rstrip()
        start = content.rfind("{")
        if start == -1 or not content.endswith("}"):
            continue
        block = content[start:]
        try:
            end, attrs = parse(block)
        except ParseError:
            continue
        if block[end + 1 :].strip():
            continue

        for key, value in attrs.items():
            token.attrSet(key, value)
        text.content = content[:start].rstrip()


class PageRenderer:
    """Renders Markdown documents to complete HTML pages.

    Output is rebuilt on every call; nothing is cached.
    """

    def __init__(self, root_dir: Path) -> None:
        """Initialize renderer.

        Args:
            root_dir: Directory that /md/ and /files/ routes resolve against
        """
        self._root_dir = root_dir
        self._md = create_markdown()

    @property
    def root_dir(self) -> Path:
        """Directory that routes resolve against."""
        return self._root_dir

    def render_markdown(self, text: str, source_path: Path) -> str:
        """Render Markdown text to an HTML fragment.

        Args:
            text: Markdown source
            source_path: Path of the document (used to resolve relative links)

        Returns:
            HTML fragment
        """
        env = {"source_path": source_path, "root_dir": self._root_dir}
        return self._md.render(text, env)

    def render(
        self,
        text: str,
        source_path: Path,
        *,
        live_reload: bool = False,
        refresh_interval: int | None = None,
    ) -> str:
        """Render Markdown text to a complete HTML page.

        Args:
            text: Markdown source
            source_path: Path of the document (used to resolve relative links)
            live_reload: Embed the WebSocket live reload client
            refresh_interval: Embed a timer reloading every N seconds instead.
                              Takes precedence over live_reload.

        Returns:
            Complete HTML page titled after the file name
        """
        body = self.render_markdown(text, source_path)

        if refresh_interval is not None:
            script = refresh_script(refresh_interval)
        elif live_reload:
            script = LIVE_RELOAD_SCRIPT
        else:
            script = ""

        logger.debug(f"Rendered {source_path} ({len(text)} characters)")
        return build_page(body, source_path.name, script)

    def render_file(
        self,
        source_path: Path,
        *,
        live_reload: bool = False,
        refresh_interval: int | None = None,
    ) -> str:
        """Read and render a Markdown file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            OSError: If the file can't be read
            UnicodeDecodeError: If the file isn't valid UTF-8
        """
        text = source_path.read_text(encoding="utf-8")
        return self.render(
            text,
            source_path,
            live_reload=live_reload,
            refresh_interval=refresh_interval,
        )
