from __future__ import annotations

import enum
import math
import typing as tp
from dataclasses import dataclass
from pathlib import Path

__all__ = ("CacheConfig", "PersistenceMode", "TIMEOUT_SCALE_BATCH_SIZE")

# Every started group of this many requests adds one base interval to the per-request timeout.
TIMEOUT_SCALE_BATCH_SIZE = 256


class PersistenceMode(enum.Enum):
    BLOCKING = "blocking"
    """Request completion waits for the storage write to land."""

    DETACHED = "detached"
    """The storage write runs on its own; request completion does not wait for it."""


@dataclass(frozen=True)
class CacheConfig:
    """
    Configuration of a `SharedHttpCache`.

    Attributes:
    ----------
    storage_directory : Union[str, Path]
        Root directory of the default file store.

        Default: ".cache"

    persistence_mode : PersistenceMode
        Whether a request waits for its storage write (`BLOCKING`) or leaves
        it running in the background (`DETACHED`). In detached mode a later
        request for the same key in the same batch may not observe the write,
        and write failures are only logged.

        Default: PersistenceMode.DETACHED

        Examples:
        --------
        >>> config = CacheConfig(persistence_mode=PersistenceMode.BLOCKING)

    defer_content_removal : bool
        When False, the entry being replaced is removed before the new one is
        written, and its content is removed right away if the new content has a
        different digest. When True, the new record overwrites the old one in
        place and superseded content is removed only after the write landed.

        Default: False

    per_request_timeout : Optional[float]
        Base network timeout in seconds. The effective timeout of each request
        is this value multiplied by `ceil(batch_size / 256)`. None disables it.

        Default: 30.0

    integrity_algorithm : str
        Digest algorithm used for content stored without a caller integrity.

        Default: "sha512"
    """

    storage_directory: tp.Union[str, Path] = ".cache"
    persistence_mode: PersistenceMode = PersistenceMode.DETACHED
    defer_content_removal: bool = False
    per_request_timeout: tp.Optional[float] = 30.0
    integrity_algorithm: str = "sha512"

    def timeout_for_batch(self, batch_size: int) -> tp.Optional[float]:
        """
        Per-request timeout for a batch of `batch_size` requests.

        >>> CacheConfig(per_request_timeout=10).timeout_for_batch(300)
        20
        """
        if self.per_request_timeout is None:
            return None
        return self.per_request_timeout * max(1, math.ceil(batch_size / TIMEOUT_SCALE_BATCH_SIZE))
