import pytest

from core.citation_injector import (
    cited_pages,
    format_citation,
    fuzzy_score,
    inject_citations,
    key_words,
    match_pages,
    parse_citations,
)
from model.annotation import PageMapping

VIRUS_EXCERPT = "Viruses replicate inside host cells and destroy them."


def test_exact_match_cites_sentence_once():
    mappings = [PageMapping(excerpt=VIRUS_EXCERPT, pages=[18])]

    out = inject_citations("Viruses replicate inside host cells.", [VIRUS_EXCERPT], mappings)

    assert out == "Viruses replicate inside host cells (page 18)."
    assert out.count("(page") == 1


def test_multiple_pages_are_sorted_and_joined():
    mappings = [PageMapping(excerpt=VIRUS_EXCERPT, pages=[7, 2, 5])]

    out = inject_citations("Viruses replicate inside host cells.", [VIRUS_EXCERPT], mappings)

    assert out == "Viruses replicate inside host cells (pages 2, 5, 7)."


def test_format_citation():
    assert format_citation([5]) == "page 5"
    assert format_citation([5, 2, 5]) == "pages 2, 5"


@pytest.mark.parametrize(
    "answer, excerpts, mappings",
    [
        (
            "Viruses replicate inside host cells. They also mutate quickly!",
            [VIRUS_EXCERPT],
            [PageMapping(excerpt=VIRUS_EXCERPT, pages=[18])],
        ),
        (
            "Mitochondria make energy. Ribosomes build proteins? Both matter.",
            [
                "Mitochondria produce most of the chemical energy needed by cells.",
                "Ribosomes translate messenger RNA into proteins, in the cytoplasm.",
            ],
            [
                PageMapping(
                    excerpt="Mitochondria produce most of the chemical energy needed by cells.",
                    pages=[4],
                ),
                PageMapping(
                    excerpt="Ribosomes translate messenger RNA into proteins, in the cytoplasm.",
                    pages=[6, 9],
                ),
            ],
        ),
    ],
)
def test_injection_is_idempotent(answer, excerpts, mappings):
    once = inject_citations(answer, excerpts, mappings)
    twice = inject_citations(once, excerpts, mappings)
    assert twice == once
    assert once != answer


def test_already_cited_sentence_is_left_alone():
    mappings = [PageMapping(excerpt=VIRUS_EXCERPT, pages=[18])]
    answer = "Viruses replicate inside host cells (page 3)."

    assert inject_citations(answer, [VIRUS_EXCERPT], mappings) == answer


def test_fuzzy_match_resolves_paraphrase():
    mappings = [
        PageMapping(excerpt="Mitochondria produce most of the chemical energy needed by cells", pages=[4])
    ]
    source = "mitochondria produces chemical energy for the cell"

    assert match_pages(source, 5, mappings) == [4]


def test_fuzzy_prefers_highest_word_count():
    weak = PageMapping(excerpt="chemical energy stored in fat", pages=[2])
    strong = PageMapping(excerpt="mitochondria generate chemical energy for cells", pages=[9])
    source = "Mitochondria generate chemical energy within cells"

    count_weak, ok_weak = fuzzy_score(source, weak.excerpt)
    count_strong, ok_strong = fuzzy_score(source, strong.excerpt)
    assert ok_weak and ok_strong
    assert count_strong > count_weak
    assert match_pages(source, 0, [weak, strong]) == [9]


def test_fuzzy_threshold_needs_two_words():
    count, ok = fuzzy_score("photosynthesis", "photosynthesis needs light")
    assert count == 1
    assert not ok


def test_positional_fallback_uses_same_index():
    mappings = [
        PageMapping(excerpt="Quantum entanglement experiments", pages=[1]),
        PageMapping(excerpt="Superconducting magnets levitate", pages=[8]),
    ]
    assert match_pages("Zebra crossings", 1, mappings) == [8]


def test_unmatched_excerpt_stays_uncited():
    mappings = [PageMapping(excerpt="Quantum entanglement experiments", pages=[1])]
    answer = "Zebra crossings help pedestrians."

    assert match_pages("Zebra crossings help pedestrians", 3, mappings) is None
    excerpts = ["Quantum entanglement experiments", "Zebra crossings help pedestrians"]
    assert inject_citations(answer, excerpts, mappings) == (
        "Zebra crossings help pedestrians."
    )


def test_no_mappings_returns_answer_unchanged():
    assert inject_citations("Anything at all.", [VIRUS_EXCERPT], []) == "Anything at all."


def test_key_words_from_three_phrases():
    words = key_words("Insulin regulates blood glucose, mainly in the liver. Also muscle.")
    assert words[:4] == ["Insulin", "regulates", "blood", "glucos"]
    assert words[4:8] == ["Insulin", "regulates", "blood", "glucose,"]
    assert words[8:] == ["Insulin", "regulates", "blood", "glucose"]


def test_regex_characters_in_words_are_escaped():
    excerpt = "Growth (measured yearly) increased sharply in 2020."
    mappings = [PageMapping(excerpt=excerpt, pages=[3])]

    out = inject_citations("Growth increased sharply.", [excerpt], mappings)

    assert out == "Growth increased sharply (page 3)."


def test_parse_citations_matches_renderer_pattern():
    text = "A claim (page 3). Another (pages 2, 5). Not a citation (p. 4)."
    assert parse_citations(text) == [[3], [2, 5]]
    assert cited_pages(text) == [2, 3, 5]
