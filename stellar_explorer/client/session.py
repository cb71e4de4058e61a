"""Client-side state for one browser session.

``ExplorerSession`` owns the on-screen result, the uploaded image preview,
the loading gate and the queue of toast notices. It never raises: every
failure ends up as a destructive ``Notice`` and ``loading`` is always
cleared when a submission returns.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, TypeVar

from stellar_explorer.client.api import RelayClient, encode_data_url
from stellar_explorer.errors import RelayError, ValidationError
from stellar_explorer.schemas import CelestialInfo

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Display order and headings of the result card. ``name`` is the card title.
FIELD_LABELS: tuple[tuple[str, str], ...] = (
    ("type", "Type"),
    ("distance", "Distance"),
    ("orbit", "Orbit"),
    ("moons", "Moons/Rings"),
    ("size", "Size & Composition"),
    ("composition", "Composition"),
    ("special", "Special Features"),
    ("notes", "Notes"),
)


@dataclass(frozen=True)
class Notice:
    title: str
    description: str = ""
    variant: str = "default"  # "default" | "destructive"


EMPTY_QUERY_NOTICE = Notice("Please enter a search query", variant="destructive")
SEARCH_FAILED_NOTICE = Notice(
    "Search failed",
    "Unable to identify the celestial object. Please try again.",
    variant="destructive",
)
ANALYSIS_FAILED_NOTICE = Notice(
    "Analysis failed",
    "Unable to analyze the image. Please try again.",
    variant="destructive",
)


def result_sections(info: CelestialInfo) -> list[tuple[str, str]]:
    return [(label, getattr(info, name)) for name, label in FIELD_LABELS]


@dataclass
class ExplorerSession:
    relay: RelayClient
    result: CelestialInfo | None = None
    uploaded_image: str | None = None
    loading: bool = False
    notices: list[Notice] = field(default_factory=list)

    def submit_text_query(self, query: str) -> bool:
        query = query.strip()
        if not query:
            self.notices.append(EMPTY_QUERY_NOTICE)
            return False

        info = self._run(lambda: self.relay.identify_text(query), "Search error")
        if info is None:
            self.notices.append(SEARCH_FAILED_NOTICE)
            return False

        self.result = info
        self.uploaded_image = None
        self.notices.append(Notice("Object identified!", f"Found information about {info.name}"))
        return True

    def submit_image(self, content: bytes, content_type: str | None) -> bool:
        def _encode_and_send() -> tuple[str, CelestialInfo]:
            image = encode_data_url(content, content_type)
            return image, self.relay.identify_image(image)

        outcome = self._run(_encode_and_send, "Upload error")
        if outcome is None:
            self.notices.append(ANALYSIS_FAILED_NOTICE)
            return False

        image, info = outcome
        self.result = info
        self.uploaded_image = image
        self.notices.append(Notice("Image analyzed!", f"Identified as {info.name}"))
        return True

    def drain_notices(self) -> list[Notice]:
        pending, self.notices = self.notices, []
        return pending

    def _run(self, call: Callable[[], T], label: str) -> T | None:
        self.loading = True
        try:
            return call()
        except ValidationError as exc:
            logger.warning("%s: %s", label, exc.message)
        except RelayError as exc:
            logger.error("%s: %s (%s)", label, exc.message, exc.kind.value)
        except Exception:  # noqa: BLE001
            logger.exception(label)
        finally:
            self.loading = False
        return None
