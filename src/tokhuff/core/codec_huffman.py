from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Union

import heapq

from tokhuff.core.bitio import BitReader, BitWriter
from tokhuff.core.codec_base import Codec
from tokhuff.errors import CorruptPayload, TruncatedStream

EMPTY_TOKEN = ""

Code = tuple[int, ...]


# -------------------
# Tree structures
# -------------------
@dataclass(frozen=True, slots=True)
class HuffmanLeaf:
    token: str
    freq: int

    @property
    def rep(self) -> str:
        return self.token


@dataclass(frozen=True, slots=True)
class HuffmanInternal:
    freq: int
    left: TreeNode
    right: TreeNode
    # smallest token in the subtree; only used to break ties, never persisted
    rep: str


TreeNode = Union[HuffmanLeaf, HuffmanInternal]


def build_freq_table(tokens: Sequence[str]) -> dict[str, int]:
    freq: dict[str, int] = {}
    for t in tokens:
        freq[t] = freq.get(t, 0) + 1
    if not freq:
        freq[EMPTY_TOKEN] = 1
    return freq


def build_huffman_tree(freq: Mapping[str, int]) -> TreeNode:
    """
    Canonical greedy merge.

    Order key is (freq, representative token). Python compares str by code
    point, which is the same order as comparing the UTF-8 bytes.
    Representatives of live candidates are pairwise distinct (disjoint
    subtrees over distinct tokens), so heap order never depends on insertion
    order and both encoder and decoder build the same tree.
    """
    if not freq:
        freq = {EMPTY_TOKEN: 1}

    heap: list[tuple[int, str, TreeNode]] = []
    for token, f in freq.items():
        if f <= 0:
            raise ValueError(f"frequency must be positive for token {token!r}: {f}")
        heap.append((f, token, HuffmanLeaf(token=token, freq=f)))
    heapq.heapify(heap)

    if len(heap) == 1:
        return heap[0][2]

    while len(heap) > 1:
        # first pop is the smaller one under (freq, rep): it goes left
        f1, r1, n1 = heapq.heappop(heap)
        f2, r2, n2 = heapq.heappop(heap)
        parent = HuffmanInternal(freq=f1 + f2, left=n1, right=n2, rep=min(r1, r2))
        heapq.heappush(heap, (parent.freq, parent.rep, parent))

    return heap[0][2]


def count_nodes(root: TreeNode) -> tuple[int, int]:
    """Return (leaves, internal nodes)."""
    leaves = internals = 0
    stack: list[TreeNode] = [root]
    while stack:
        node = stack.pop()
        if isinstance(node, HuffmanLeaf):
            leaves += 1
        else:
            internals += 1
            stack.append(node.right)
            stack.append(node.left)
    return leaves, internals


def build_code_table(root: TreeNode) -> dict[str, Code]:
    """Left edge = 0, right edge = 1. Explicit stack: depth can reach k-1."""
    if isinstance(root, HuffmanLeaf):
        # a zero-length code is not decodable
        return {root.token: (0,)}

    codes: dict[str, Code] = {}
    stack: list[tuple[TreeNode, Code]] = [(root, ())]
    while stack:
        node, path = stack.pop()
        if isinstance(node, HuffmanLeaf):
            codes[node.token] = path
            continue
        stack.append((node.right, path + (1,)))
        stack.append((node.left, path + (0,)))
    return codes


def encode_tokens(tokens: Sequence[str], codes: Mapping[str, Code]) -> bytes:
    """tokens -> bitstream (MSB-first, zero-padded to a byte boundary)."""
    w = BitWriter()
    for t in tokens:
        code = codes.get(t)
        if code is None:
            raise ValueError(f"no code for token {t!r}")
        w.write_bits(code)
    return w.close()


def decode_tokens(root: TreeNode, reader: BitReader, n_codepoints: int) -> list[str]:
    """
    Walk the tree until at least n_codepoints code points were produced.

    The last token may overshoot the target; the caller cuts the text.
    Zero padding after the last code is never read.
    """
    if n_codepoints <= 0:
        return []

    if isinstance(root, HuffmanLeaf):
        # single symbol: no bits were spent on it
        if not root.token:
            raise CorruptPayload("corrupted archive: zero-length token for non-empty text")
        repeats = -(-n_codepoints // len(root.token))
        # the encoder spends one 0 bit per token, so the stream bounds the count
        if repeats > reader.bits_left():
            raise CorruptPayload(
                f"corrupted archive: {n_codepoints} code points claimed, "
                f"but the bitstream only covers {reader.bits_left()} tokens"
            )
        return [root.token] * repeats

    out: list[str] = []
    produced = 0
    while produced < n_codepoints:
        node: TreeNode = root
        while isinstance(node, HuffmanInternal):
            bit = reader.read_bit()
            if bit is None:
                raise TruncatedStream(
                    f"unexpected end of bitstream ({produced}/{n_codepoints} code points decoded)"
                )
            node = node.left if bit == 0 else node.right
            if node is None:
                raise CorruptPayload("corrupted bitstream/tree (missing child)")
        if not node.token:
            raise CorruptPayload("corrupted archive: empty token inside a multi-token tree")
        out.append(node.token)
        produced += len(node.token)
    return out


def huffman_compress_tokens(tokens: Sequence[str]) -> tuple[dict[str, int], bytes]:
    """
    Reusable core: tokens -> (freq_table, bitstream)
    """
    freq = build_freq_table(tokens)
    root = build_huffman_tree(freq)
    codes = build_code_table(root)
    if not tokens:
        tokens = [EMPTY_TOKEN]
    return freq, encode_tokens(tokens, codes)


def huffman_decompress_tokens(
    freq: Mapping[str, int], bitstream: bytes, n_codepoints: int, start: int = 0
) -> list[str]:
    """
    Reusable core: (freq_table, bitstream[start:], n_codepoints) -> tokens
    """
    root = build_huffman_tree(freq)
    return decode_tokens(root, BitReader(bitstream, start), n_codepoints)


class CodecHuffman(Codec):
    codec_id = "huffman"

    def compress_tokens(self, tokens):
        return huffman_compress_tokens(list(tokens))

    def decompress_tokens(self, freq, bitstream: bytes, n_codepoints: int):
        return huffman_decompress_tokens(freq, bitstream, n_codepoints)
