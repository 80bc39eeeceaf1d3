"""Page title normalization into canonical entity identifiers."""

from __future__ import annotations

import re
from urllib.parse import quote, unquote

from pageview_service.domain.interfaces import ITitleNormalizer

_WHITESPACE_PATTERN = re.compile(r"[\s_]+")


class TitleNormalizer(ITitleNormalizer):
    """Canonicalizes titles the way wiki database keys are written.

    Percent-escapes are decoded, runs of whitespace and underscores collapse
    into a single underscore and leading/trailing separators are dropped.
    Input that reduces to nothing is returned unchanged.
    """

    def normalize(self, raw_title: str) -> str:
        decoded = unquote(raw_title)
        key = _WHITESPACE_PATTERN.sub("_", decoded).strip("_")
        return key or raw_title


def title_to_path(identifier: str, article_path: str = "/wiki/$1") -> str:
    """Return the URL path of an article, e.g. ``/wiki/Main_Page``."""

    encoded = quote(identifier.replace(" ", "_"), safe=":/()!,;@$*'")
    return article_path.replace("$1", encoded)
