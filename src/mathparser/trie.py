"""
Prefix trie over the configured operator strings.

The tokenizer walks the trie from the current position and keeps the last
node that terminates an operator, which yields the longest operator that
starts there (so ``**`` wins over ``*`` when both are configured).
"""

from typing import Dict, Iterable, Optional, Tuple


class TrieNode:
    """One node of the operator trie."""

    __slots__ = ("children", "value")

    def __init__(self) -> None:
        self.children: Dict[str, "TrieNode"] = {}
        self.value: Optional[str] = None
        """The full operator if a configured operator ends at this node."""


class OperatorTrie:
    """Longest-match lookup over a fixed set of operators."""

    def __init__(self, operators: Iterable[str] = ()):
        self.root = TrieNode()
        self.longest = 0
        self.operators: Tuple[str, ...] = ()
        for op in operators:
            self.insert(op)

    def insert(self, operator: str) -> None:
        """Adds an operator string to the trie."""
        if not isinstance(operator, str) or not operator:
            raise ValueError(f"Operators must be non-empty strings, got {operator!r}")

        node = self.root
        for ch in operator:
            child = node.children.get(ch)
            if child is None:
                child = TrieNode()
                node.children[ch] = child
            node = child
        if node.value is None:
            self.operators += (operator,)
        node.value = operator
        self.longest = max(self.longest, len(operator))

    def match(self, text: str, position: int) -> Optional[str]:
        """
        Returns the longest operator starting at ``position``, or None.

        The walk is bounded by the longest configured operator.
        """
        node = self.root
        matched: Optional[str] = None
        end = min(len(text), position + self.longest)

        for index in range(position, end):
            node = node.children.get(text[index])
            if node is None:
                break
            if node.value is not None:
                matched = node.value

        return matched

    def __contains__(self, operator: object) -> bool:
        return operator in self.operators

    def __repr__(self) -> str:
        return f"OperatorTrie({list(self.operators)!r})"


def build_trie(operators: Iterable[str]) -> OperatorTrie:
    """Builds an operator trie from a sequence of operator strings."""
    return OperatorTrie(operators)
