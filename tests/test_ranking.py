from address_lookup.domain.ranking import numeric_key, rank
from address_lookup.schemas.address import AddressCandidate


def _candidates(*first_lines):
    return [
        AddressCandidate(id=str(index), lines=[line], town="Telford", postcode="TF3 4NT")
        for index, line in enumerate(first_lines)
    ]


def test_rank_orders_by_house_number_runs():
    ranked = rank(
        _candidates(
            "3c Malvern Court",
            "Flat 2a stuff 4 Malvern Court",
            "3b Malvern Court",
            "1 Malvern Court",
        )
    )

    assert [candidate.lines[0] for candidate in ranked] == [
        "1 Malvern Court",
        "Flat 2a stuff 4 Malvern Court",
        "3b Malvern Court",
        "3c Malvern Court",
    ]


def test_rank_compares_numbers_not_strings():
    ranked = rank(_candidates("10 High Street", "9 High Street", "100 High Street"))

    assert [candidate.lines[0] for candidate in ranked] == [
        "9 High Street",
        "10 High Street",
        "100 High Street",
    ]


def test_rank_puts_numbered_lines_before_named_ones():
    ranked = rank(_candidates("The Cottage", "2 Mill Lane", "Acorn House"))

    assert [candidate.lines[0] for candidate in ranked] == [
        "2 Mill Lane",
        "Acorn House",
        "The Cottage",
    ]


def test_rank_is_stable_when_reapplied():
    ranked = rank(_candidates("4 Elm Row", "Flat 1, 4 Elm Row", "4a Elm Row", "Elm Lodge"))

    assert rank(ranked) == ranked
    assert rank(reversed(ranked)) == ranked


def test_numeric_key_ends_with_sentinel():
    assert numeric_key("Flat 2a stuff 4") == ((0, 2), (0, 4), (1, 0))
    assert numeric_key("Rose Cottage") == ((1, 0),)
