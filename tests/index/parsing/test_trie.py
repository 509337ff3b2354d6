"""Tests for the dynamic identifier prefix trie."""

from axtrace.index._internal.parsing.trie import PrefixTrie


class TestPrefixTrie:
    def test_prefix_only_pattern(self) -> None:
        trie: PrefixTrie[str] = PrefixTrie()
        trie.insert("card.", "", "card")

        assert trie.lookup("card.3") == ["card"]
        assert trie.lookup("other.3") == []

    def test_suffix_must_match(self) -> None:
        trie: PrefixTrie[str] = PrefixTrie()
        trie.insert("row.", ".title", "row-title")

        assert trie.lookup("row.4.title") == ["row-title"]
        assert trie.lookup("row.4.subtitle") == []
        # The dynamic part may not be empty
        assert trie.lookup("row.title") == []

    def test_requires_complete_segment(self) -> None:
        trie: PrefixTrie[str] = PrefixTrie()

        assert trie.insert("card", "", "x") is False
        assert trie.insert("a..b", "", "x") is False
        assert len(trie) == 0

    def test_partial_segment_stem(self) -> None:
        trie: PrefixTrie[str] = PrefixTrie()
        trie.insert("item.card-", "", "stem")

        assert trie.lookup("item.card-7") == ["stem"]
        assert trie.lookup("item.row-7") == []

    def test_longest_path_wins(self) -> None:
        trie: PrefixTrie[str] = PrefixTrie()
        trie.insert("home.", "", "short")
        trie.insert("home.card.", "", "long")

        assert trie.lookup("home.card.3") == ["long"]
        assert trie.lookup("home.other") == ["short"]

    def test_most_specific_pattern_wins(self) -> None:
        trie: PrefixTrie[str] = PrefixTrie()
        trie.insert("list.", "", "any")
        trie.insert("list.", ".title", "titled")

        assert trie.lookup("list.2.title") == ["titled"]
        assert trie.lookup("list.2.body") == ["any"]

    def test_values_and_len(self) -> None:
        trie: PrefixTrie[int] = PrefixTrie()
        trie.insert("a.", "", 1)
        trie.insert("a.b.", "", 2)

        assert len(trie) == 2
        assert sorted(trie.values()) == [1, 2]
