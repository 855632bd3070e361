"""Caption directives embedded in markdown image alt text.

``![A cat|nolink|left](cat.jpg)`` carries the caption ``A cat`` and two
directives: don't wrap the image in a link, and float it left.
"""

from dataclasses import dataclass

NOLINK = "nolink"
LEFT = "left"
RIGHT = "right"

DIRECTIVES = frozenset({NOLINK, LEFT, RIGHT})


@dataclass(frozen=True)
class CaptionDirectives:
    text: str
    render_as_link: bool = True
    align_class: str | None = None


def parse_caption(raw_caption: str) -> CaptionDirectives:
    """Split a raw caption on ``|`` into caption text and directives.

    The caption text is the last segment that is not a directive, or the final
    segment if all of them are. Directives are matched by exact token equality
    against every segment, the caption segment included. ``left`` wins over
    ``right``. Never fails.
    """
    segments = raw_caption.split("|")

    text = segments[-1]
    for segment in reversed(segments):
        if segment not in DIRECTIVES:
            text = segment
            break

    align_class = None
    if RIGHT in segments:
        align_class = RIGHT
    if LEFT in segments:
        align_class = LEFT

    return CaptionDirectives(
        text=text,
        render_as_link=NOLINK not in segments,
        align_class=align_class,
    )
