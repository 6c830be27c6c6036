from __future__ import annotations

from typing import Callable, Iterator

from .certificates_layout import ORIGIN_BOTTOM_LEFT

Measure = Callable[[str], float]


def wrap_text(text: str, max_width: float, measure: Measure) -> Iterator[str]:
    """Greedy word wrap.

    Words are accumulated while the measured line fits in ``max_width``.
    A single word wider than ``max_width`` is emitted alone on its line and
    is never split.
    """
    current = ""
    for word in text.split():
        if not current:
            current = word
            continue
        candidate = f"{current} {word}"
        if measure(candidate) <= max_width:
            current = candidate
        else:
            yield current
            current = word
    if current:
        yield current


def line_centers(
    anchor_y: float, count: int, line_height: float, origin: str
) -> list[float]:
    """Vertical centre of each line of a block centred on ``anchor_y``.

    The block starts ``count * line_height / 2`` above the anchor and every
    following line sits one ``line_height`` further down the page.
    """
    if count <= 0:
        return []
    half = count * line_height / 2
    if origin == ORIGIN_BOTTOM_LEFT:
        start = anchor_y + half
        return [start - (i + 0.5) * line_height for i in range(count)]
    start = anchor_y - half
    return [start + (i + 0.5) * line_height for i in range(count)]


def centered_x(anchor_x: float, width: float) -> float:
    return anchor_x - width / 2
