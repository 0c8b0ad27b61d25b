"""MarkerRenderer — derive the visual markers for one document.

A refresh filters the slot table down to one document and emits, per
bookmark, a line highlight (with hover text) and an inline slot label.
The result is a complete batch: the host replaces the previous batch for
that document with it, so an empty batch clears stale markers.
"""

import logging
from dataclasses import dataclass, field

from quickmarks.modules.bookmarks.registry import Position

log = logging.getLogger("quickmarks.bookmarks.renderer")


@dataclass(frozen=True)
class MarkerStyle:
    highlight_color: str = "rgba(255, 204, 203, 0.5)"
    border: str = "1px solid rgba(178, 34, 34, 1)"
    ruler_color: str = "blue"
    ruler_lane: str = "left"
    label_color: str = "rgba(178, 34, 34, 1)"
    label_weight: str = "bold"
    label_margin: str = "0 0 0 5px"
    label_format: str = "[{slot}]"
    hover_format: str = "Bookmark {slot}"

    @classmethod
    def from_config(cls, cfg):
        """Build a style from a module config proxy; unset keys keep defaults."""
        defaults = cls()
        return cls(
            highlight_color=cfg.get("highlight_color", defaults.highlight_color),
            border=cfg.get("border", defaults.border),
            label_color=cfg.get("label_color", defaults.label_color),
            label_format=_template(cfg, "label_format", defaults.label_format),
            hover_format=_template(cfg, "hover_format", defaults.hover_format),
        )


def _template(cfg, key, default):
    """A ``{slot}`` format string from config, or *default* if it does not format."""
    template = cfg.get(key, default)
    try:
        template.format(slot=1)
    except (AttributeError, IndexError, KeyError, ValueError) as e:
        log.warning("Ignoring %s %r (%s: %s), using %r",
                    key, template, type(e).__name__, e, default)
        return default
    return template


@dataclass(frozen=True)
class HighlightSpan:
    """Whole-line highlight: from the line start to the next line start."""

    slot: int
    start: Position
    end: Position
    hover: str


@dataclass(frozen=True)
class LabelSpan:
    """Slot label shown after the content at the start of the line."""

    slot: int
    anchor: Position
    text: str
    color: str
    weight: str
    margin: str


@dataclass(frozen=True)
class RenderedMarkerSet:
    document_id: str
    highlights: tuple = ()
    labels: tuple = ()
    style: MarkerStyle = field(default_factory=MarkerStyle, compare=False)

    def __bool__(self):
        return bool(self.highlights or self.labels)

    def __len__(self):
        return len(self.highlights)

    @property
    def slots(self):
        return [h.slot for h in self.highlights]

    def lines(self):
        """{slot: line} for the bookmarks in this batch."""
        return {h.slot: h.start.line for h in self.highlights}


def _pairs(slots):
    """Accept a registry, a {slot: bookmark} mapping or (slot, bookmark) pairs."""
    if hasattr(slots, "items"):
        slots = slots.items()
    return [(slot, bm) for slot, bm in slots if bm is not None]


class MarkerRenderer:
    """Stateless marker computation plus a per-document "last applied" cache."""

    def __init__(self, style=None):
        self.style = style or MarkerStyle()
        self._applied = {}  # document_id -> RenderedMarkerSet

    def refresh(self, document_id, slots):
        """Return the marker batch for *document_id* from *slots*."""
        style = self.style
        highlights = []
        labels = []
        for slot, bm in sorted(_pairs(slots), key=lambda pair: pair[0]):
            if bm.document_id != document_id:
                continue
            line = bm.position.line
            highlights.append(HighlightSpan(
                slot=slot,
                start=Position(line, 0),
                end=Position(line + 1, 0),
                hover=style.hover_format.format(slot=slot),
            ))
            labels.append(LabelSpan(
                slot=slot,
                anchor=Position(line, 0),
                text=style.label_format.format(slot=slot),
                color=style.label_color,
                weight=style.label_weight,
                margin=style.label_margin,
            ))
        return RenderedMarkerSet(document_id, tuple(highlights), tuple(labels), style)

    def render(self, document_id, slots, apply):
        """Refresh and hand the batch to *apply* unless it is unchanged.

        *apply* receives the complete RenderedMarkerSet and must replace
        whatever it showed before for that document. Returns the batch.
        """
        markers = self.refresh(document_id, slots)
        previous = self._applied.get(document_id)
        if previous is not None and previous == markers and previous.style == markers.style:
            log.debug("Markers unchanged for %s", document_id)
            return markers
        apply(markers)
        self._applied[document_id] = markers
        log.debug("Applied %d marker(s) to %s", len(markers), document_id)
        return markers

    def applied(self, document_id):
        """The batch last handed to the host for *document_id*, or None."""
        return self._applied.get(document_id)

    def invalidate(self, document_id):
        self._applied.pop(document_id, None)

    def reset(self, style=None):
        if style is not None:
            self.style = style
        self._applied.clear()
