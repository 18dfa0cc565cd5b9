from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence


class Codec(ABC):
    """
    Minimal interface for token codecs.

    The codec owns the symbol model (frequency table) and the bitstream;
    the container owns everything else (magic, N, names, lengths).
    """

    codec_id: str

    @abstractmethod
    def compress_tokens(self, tokens: Sequence[str]) -> tuple[dict[str, int], bytes]:
        """Return (freq_table, bitstream)."""
        raise NotImplementedError

    @abstractmethod
    def decompress_tokens(
        self, freq: Mapping[str, int], bitstream: bytes, n_codepoints: int
    ) -> list[str]:
        raise NotImplementedError
