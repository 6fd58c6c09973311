import heapq
from dataclasses import dataclass
from typing import Dict, List, Tuple, Union


class HuffmanError(Exception):
    pass

class EmptyInputError(HuffmanError, ValueError):
    pass

class CorruptStreamError(HuffmanError, ValueError):
    pass


@dataclass(frozen=True)
class Leaf: # terminal node, holds one byte value
    symbol: int
    weight: int

@dataclass(frozen=True)
class Internal: # combination point, children are indices into the arena
    left: int
    right: int
    weight: int

TreeNode = Union[Leaf, Internal]


class HuffmanTree:
    def __init__(self, nodes: List[TreeNode], root: int):
        self.nodes = nodes # arena, every node addressed by its index
        self.root = root

    def node(self, index: int) -> TreeNode:
        return self.nodes[index]

    @property
    def root_node(self) -> TreeNode:
        return self.nodes[self.root]

    def is_single_leaf(self) -> bool:
        return isinstance(self.root_node, Leaf)

    def __eq__(self, other):
        if not isinstance(other, HuffmanTree):
            return NotImplemented
        return self.root == other.root and self.nodes == other.nodes

    def __repr__(self):
        return f"HuffmanTree(nodes={len(self.nodes)}, root={self.root})"


def build_frequency_table(data: bytes) -> Dict[int, int]:
    if len(data) == 0:
        raise EmptyInputError("cannot build a frequency table from empty input")
    ft: Dict[int, int] = {}
    for b in data:
        ft[b] = ft.get(b, 0) + 1
    return ft


def build_huffman_tree(frequency_table: Dict[int, int]) -> HuffmanTree: # frequency_table: dict of symbol -> frequency
    if not frequency_table:
        raise EmptyInputError("cannot build a Huffman tree from an empty frequency table")

    nodes: List[TreeNode] = []
    priority_queue: List[Tuple[int, int, int]] = [] # (weight, insertion order, arena index)

    # Leaves go in by ascending symbol so ties break the same way on both sides
    for symbol in sorted(frequency_table):
        weight = frequency_table[symbol]
        if not 0 <= symbol <= 255:
            raise ValueError(f"symbol out of byte range: {symbol}")
        if weight <= 0:
            raise ValueError(f"frequency must be positive for symbol {symbol}, got {weight}")
        nodes.append(Leaf(symbol, weight))
        priority_queue.append((weight, len(nodes) - 1, len(nodes) - 1))
    heapq.heapify(priority_queue)
    order = len(nodes)

    # Build the tree
    while len(priority_queue) > 1:
        left_weight, _, left = heapq.heappop(priority_queue)
        right_weight, _, right = heapq.heappop(priority_queue)
        nodes.append(Internal(left, right, left_weight + right_weight)) # internal node with combined frequency
        heapq.heappush(priority_queue, (left_weight + right_weight, order, len(nodes) - 1))
        order += 1

    return HuffmanTree(nodes, priority_queue[0][2]) # root of the tree


def generate_huffman_codes(tree: HuffmanTree) -> Dict[int, str]:
    root = tree.root_node
    # One distinct symbol: no descent possible, use a one-bit code so it can be packed
    if isinstance(root, Leaf):
        return {root.symbol: "0"}

    codes: Dict[int, str] = {}
    stack = [(tree.root, "")]
    while stack:
        index, current_code = stack.pop()
        node = tree.node(index)
        if isinstance(node, Leaf):
            codes[node.symbol] = current_code
            continue
        stack.append((node.right, current_code + "1"))
        stack.append((node.left, current_code + "0"))

    return codes # mapping of symbols to their corresponding Huffman codes


def pack_bits_from_codes(data: bytes, code_map: Dict[int, str]) -> Tuple[bytes, int]:
    """
    Converts Huffman codes into packed bytes, most significant bit first
    Returns (packed_bytes, pad_bits) where pad_bits is number of 0 bits added at the end
    """
    out = bytearray()
    acc = 0
    acc_bits = 0

    for b in data:
        bits = code_map.get(b)
        if bits is None:
            raise ValueError(f"no code for byte {b}")
        for ch in bits:
            acc = (acc << 1) | (1 if ch == '1' else 0)
            acc_bits += 1
            if acc_bits == 8:
                out.append(acc)
                acc = 0
                acc_bits = 0

    pad_bits = 0
    if acc_bits != 0:
        pad_bits = 8 - acc_bits
        acc = acc << pad_bits
        out.append(acc & 0xFF)

    return bytes(out), pad_bits


def unpack_and_decode(packed: bytes, tree: HuffmanTree, total_symbols: int) -> bytes:
    """
    Decode packed bits by walking the Huffman tree, stopping after total_symbols
    so that padding bits are never consumed
    """
    if total_symbols <= 0:
        raise CorruptStreamError(f"total symbol count must be positive, got {total_symbols}")

    root = tree.root_node
    if isinstance(root, Leaf):
        # One-bit "0" code per symbol, so the payload length is fixed by the count
        expected = (total_symbols + 7) // 8
        if len(packed) != expected:
            raise CorruptStreamError(
                f"single-symbol payload is {len(packed)} bytes, expected {expected} for {total_symbols} symbols"
            )
        return bytes([root.symbol]) * total_symbols

    decoded = bytearray()
    index = tree.root
    bits_used = 0

    for byte in packed:
        for i in range(7, -1, -1):
            node = tree.node(index)
            index = node.right if (byte >> i) & 1 else node.left
            bits_used += 1

            # Leaf
            leaf = tree.node(index)
            if isinstance(leaf, Leaf):
                decoded.append(leaf.symbol)
                index = tree.root
                if len(decoded) == total_symbols:
                    break
        if len(decoded) == total_symbols:
            break

    if len(decoded) < total_symbols:
        raise CorruptStreamError(
            f"bitstream exhausted after {len(decoded)} of {total_symbols} symbols"
        )
    if (bits_used + 7) // 8 != len(packed):
        raise CorruptStreamError(
            f"{len(packed) - (bits_used + 7) // 8} unused payload bytes after the last symbol"
        )

    return bytes(decoded)


def code_lengths(code_map: Dict[int, str]) -> Dict[int, int]:
    return {symbol: len(code) for symbol, code in code_map.items()}


def encoded_bit_length(frequency_table: Dict[int, int], code_map: Dict[int, str]) -> int:
    return sum(frequency_table[s] * len(code_map[s]) for s in frequency_table)
