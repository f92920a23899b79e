"""Split block-level HTML into fixed-size printable pages.

The editor hands us a flat stream of top-level blocks (``<p>``, ``<h1>``,
``<ul>`` ...). Blocks are appended to the current page one at a time and the
accumulated content is re-measured after each append; when the page budget is
exceeded the current page is closed and the block starts the next one. A block
is never split, so a single oversize block gets a page to itself.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from html.parser import HTMLParser
from typing import Callable, Optional, Protocol
from xml.sax.saxutils import escape as xml_escape

from reportlab.lib.enums import TA_LEFT
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph

from .config import PAGINATION_DEBOUNCE_SECONDS
from .errors import MeasurementUnavailable

logger = logging.getLogger(__name__)

DPI = 96

VOID_TAGS = frozenset(
    {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "source", "track", "wbr"}
)
SKIP_TAGS = frozenset({"script", "style"})


@dataclass(frozen=True, slots=True)
class PageGeometry:
    page_width: float = 8.5 * DPI
    page_height: float = 11.5 * DPI
    margin: float = 1 * DPI

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * self.margin

    @property
    def content_height(self) -> float:
        return self.page_height - 2 * self.margin


@dataclass(frozen=True, slots=True)
class Page:
    id: str
    content: str
    measured_height: Optional[float]
    blocks: tuple[str, ...] = ()


class MeasureSurface(Protocol):
    def measure(self, html: str) -> float:
        """Rendered height of ``html`` laid out at the page content width."""
        ...


# ---------- block splitting ----------

class _BlockSplitter(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=False)
        self.blocks: list[str] = []
        self._parts: list[str] = []
        self._stack: list[str] = []
        self._loose_text: list[str] = []
        self._skipping: Optional[str] = None

    def _flush_loose_text(self) -> None:
        text = "".join(self._loose_text).strip()
        self._loose_text = []
        if text:
            self.blocks.append(f"<p>{text}</p>")

    def handle_starttag(self, tag, attrs):
        if self._skipping:
            return
        if tag in SKIP_TAGS:
            self._skipping = tag
            return
        raw = self.get_starttag_text()
        if not self._stack:
            self._flush_loose_text()
            if tag in VOID_TAGS:
                self.blocks.append(raw)
                return
        self._parts.append(raw)
        if tag not in VOID_TAGS:
            self._stack.append(tag)

    def handle_startendtag(self, tag, attrs):
        if self._skipping:
            return
        raw = self.get_starttag_text()
        if not self._stack:
            self._flush_loose_text()
            self.blocks.append(raw)
        else:
            self._parts.append(raw)

    def handle_endtag(self, tag):
        if self._skipping:
            if tag == self._skipping:
                self._skipping = None
            return
        if tag not in self._stack:
            return
        # close anything the author left open inside this element
        while self._stack:
            open_tag = self._stack.pop()
            self._parts.append(f"</{open_tag}>")
            if open_tag == tag:
                break
        if not self._stack:
            self.blocks.append("".join(self._parts))
            self._parts = []

    def handle_data(self, data):
        if self._skipping:
            return
        if self._stack:
            self._parts.append(data)
        else:
            self._loose_text.append(data)

    def handle_entityref(self, name):
        self.handle_data(f"&{name};")

    def handle_charref(self, name):
        self.handle_data(f"&#{name};")

    def close(self):
        super().close()
        self._flush_loose_text()
        if self._parts:
            while self._stack:
                self._parts.append(f"</{self._stack.pop()}>")
            self.blocks.append("".join(self._parts))
            self._parts = []


def split_blocks(html: str) -> list[str]:
    """Top-level block elements of ``html`` as HTML strings, in document order."""
    splitter = _BlockSplitter()
    splitter.feed(html or "")
    splitter.close()
    return splitter.blocks


# ---------- reportlab measurement ----------

LINE_BREAK_TAGS = frozenset({"br", "li", "tr", "p", "div", "dt", "dd"})


class _TextLines(HTMLParser):
    """Flatten one block into (tag, lines) where each line is plain text."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.tag: Optional[str] = None
        self.lines: list[str] = []
        self._current: list[str] = []

    def _break(self) -> None:
        self.lines.append("".join(self._current).strip())
        self._current = []

    def handle_starttag(self, tag, attrs):
        if self.tag is None:
            self.tag = tag
            return
        if tag in LINE_BREAK_TAGS and "".join(self._current).strip():
            self._break()
        elif tag in ("td", "th") and self._current:
            self._current.append(" | ")

    def handle_startendtag(self, tag, attrs):
        if self.tag is None:
            self.tag = tag
        elif tag == "br":
            self._break()

    def handle_data(self, data):
        self._current.append(data)

    def close(self):
        super().close()
        if "".join(self._current).strip() or not self.lines:
            self._break()


class ReportLabMeasureSurface:
    """Off-screen layout of HTML blocks with reportlab paragraphs.

    Typography mirrors a live page: Times 12px with a 1.6 line height,
    laid out at the page content width.
    """

    HEADING_SIZES = {"h1": 24, "h2": 18, "h3": 15, "h4": 13, "h5": 12, "h6": 11}

    def __init__(
        self,
        width: float = PageGeometry().content_width,
        font_size: float = 12,
        line_height: float = 1.6,
    ) -> None:
        self.width = width
        base = getSampleStyleSheet()["Normal"]
        self._body = ParagraphStyle(
            "PageBody",
            parent=base,
            fontName="Times-Roman",
            fontSize=font_size,
            leading=font_size * line_height,
            alignment=TA_LEFT,
            spaceAfter=font_size,
        )
        self._styles = {"p": self._body}
        for tag, size in self.HEADING_SIZES.items():
            self._styles[tag] = ParagraphStyle(
                f"Page{tag.upper()}",
                parent=self._body,
                fontName="Times-Bold",
                fontSize=size,
                leading=size * line_height,
                spaceBefore=size * 0.5,
                spaceAfter=size * 0.5,
            )
        self._styles["li"] = ParagraphStyle("PageListItem", parent=self._body, leftIndent=24, spaceAfter=0)
        self._styles["blockquote"] = ParagraphStyle("PageQuote", parent=self._body, leftIndent=32)

    def _style_for(self, tag: Optional[str]) -> ParagraphStyle:
        return self._styles.get(tag or "p", self._body)

    def _block_height(self, block: str) -> float:
        parser = _TextLines()
        parser.feed(block)
        parser.close()
        if parser.tag == "hr":
            return self._body.fontSize
        if parser.tag in ("ul", "ol"):
            style = self._styles["li"]
            items = [line for line in parser.lines if line] or [""]
            return self._body.spaceAfter + sum(self._wrap(xml_escape(item), style) for item in items)
        style = self._style_for(parser.tag)
        markup = "<br/>".join(xml_escape(line) for line in parser.lines)
        return self._wrap(markup, style) + style.spaceBefore + style.spaceAfter

    def _wrap(self, markup: str, style: ParagraphStyle) -> float:
        paragraph = Paragraph(markup or "&nbsp;", style)
        _, height = paragraph.wrap(self.width, 1e9)
        return height

    def measure(self, html: str) -> float:
        try:
            return sum(self._block_height(block) for block in split_blocks(html))
        except (ValueError, KeyError, AttributeError) as exc:
            raise MeasurementUnavailable(f"layout failed: {exc}") from exc


# ---------- engine ----------

class PaginationEngine:
    def __init__(self, surface: Optional[MeasureSurface], geometry: Optional[PageGeometry] = None) -> None:
        self.surface = surface
        self.geometry = geometry or PageGeometry()

    @property
    def budget(self) -> float:
        return self.geometry.content_height

    def paginate(self, html: str) -> list[Page]:
        blocks = split_blocks(html)
        if not blocks:
            return [Page(id="1", content="", measured_height=0.0)]
        if self.surface is None:
            logger.warning("no measurement surface; rendering %d blocks as one page", len(blocks))
            return self._unmeasured(blocks)
        try:
            return self._split(blocks)
        except MeasurementUnavailable as exc:
            logger.warning("measurement unavailable, falling back to a single page: %s", exc)
            return self._unmeasured(blocks)

    def _unmeasured(self, blocks: list[str]) -> list[Page]:
        return [Page(id="1", content="".join(blocks), measured_height=None, blocks=tuple(blocks))]

    def _split(self, blocks: list[str]) -> list[Page]:
        pages: list[Page] = []
        current: list[str] = []
        current_height = 0.0
        for block in blocks:
            tentative = current + [block]
            height = self.surface.measure("".join(tentative))
            if height > self.budget and current:
                pages.append(self._page(len(pages) + 1, current, current_height))
                current = [block]
                current_height = self.surface.measure(block)
            else:
                current = tentative
                current_height = height
        if current:
            pages.append(self._page(len(pages) + 1, current, current_height))
        return pages

    @staticmethod
    def _page(number: int, blocks: list[str], height: float) -> Page:
        return Page(id=str(number), content="".join(blocks), measured_height=height, blocks=tuple(blocks))


class PaginationDebouncer:
    """Collapses bursts of content-change notifications into one recompute.

    Single-threaded: the host calls ``poll()`` from its event loop tick.
    """

    def __init__(
        self,
        engine: PaginationEngine,
        delay: float = PAGINATION_DEBOUNCE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        on_pages: Optional[Callable[[list[Page]], None]] = None,
    ) -> None:
        self.engine = engine
        self.delay = delay
        self._clock = clock
        self._on_pages = on_pages
        self._pending: Optional[str] = None
        self._deadline = 0.0
        self.recompute_count = 0
        self.pages: list[Page] = engine.paginate("")

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def notify(self, html: str) -> None:
        self._pending = html
        self._deadline = self._clock() + self.delay

    def poll(self) -> bool:
        if self._pending is None or self._clock() < self._deadline:
            return False
        self._recompute()
        return True

    def flush(self) -> bool:
        if self._pending is None:
            return False
        self._recompute()
        return True

    def _recompute(self) -> None:
        html, self._pending = self._pending, None
        self.pages = self.engine.paginate(html)
        self.recompute_count += 1
        if self._on_pages:
            self._on_pages(self.pages)
