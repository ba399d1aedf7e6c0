from datetime import datetime

from djazair.core.models import LegRole
from djazair.core.validation import expected_endpoints, is_direct, validate, validate_all


DEP = datetime(2025, 9, 17, 8, 0)
ARR = datetime(2025, 9, 17, 10, 0)


def test_expected_endpoints_per_role():
    assert expected_endpoints(LegRole.OUTBOUND_TO_HUB, "CDG", "DXB", "ALG") == ("CDG", "ALG")
    assert expected_endpoints(LegRole.OUTBOUND_FROM_HUB, "CDG", "DXB", "ALG") == ("ALG", "DXB")
    assert expected_endpoints(LegRole.RETURN_TO_HUB, "CDG", "DXB", "ALG") == ("DXB", "ALG")
    assert expected_endpoints(LegRole.RETURN_FROM_HUB, "CDG", "DXB", "ALG") == ("ALG", "CDG")


def test_wrong_endpoints_are_dropped(make_offer):
    good = make_offer("CDG", "ALG", DEP, ARR)
    other_airport = make_offer("ORY", "ALG", DEP, ARR)
    wrong_way = make_offer("ALG", "CDG", DEP, ARR)

    kept = validate([good, other_airport, wrong_way], LegRole.OUTBOUND_TO_HUB, ("CDG", "ALG"))

    assert kept == [good]


def test_endpoint_match_ignores_case(make_offer):
    offer = make_offer("cdg", "alg", DEP, ARR)
    assert validate([offer], LegRole.OUTBOUND_TO_HUB, ("CDG", "ALG")) == [offer]


def test_direct_only_roles_reject_stops(make_offer):
    one_stop_in = make_offer("CDG", "ALG", DEP, ARR, stops=1)
    one_stop_back = make_offer("ALG", "CDG", DEP, ARR, stops=1)

    assert validate([one_stop_in], LegRole.OUTBOUND_TO_HUB, ("CDG", "ALG")) == []
    assert validate([one_stop_back], LegRole.RETURN_FROM_HUB, ("ALG", "CDG")) == []


def test_flexible_roles_keep_connections(make_offer):
    onward = make_offer("ALG", "DXB", DEP, ARR, stops=1)
    back = make_offer("DXB", "ALG", DEP, ARR, stops=2)

    assert validate([onward], LegRole.OUTBOUND_FROM_HUB, ("ALG", "DXB")) == [onward]
    assert validate([back], LegRole.RETURN_TO_HUB, ("DXB", "ALG")) == [back]


def test_missing_stop_detail_falls_back_to_segments(make_offer, make_segment):
    single = make_offer("CDG", "ALG", DEP, ARR, stops=None,
                        segments=[make_segment("CDG", "ALG")])
    chained = make_offer("CDG", "ALG", DEP, ARR, stops=None,
                         segments=[make_segment("CDG", "TUN"), make_segment("TUN", "ALG")])
    bare = make_offer("CDG", "ALG", DEP, ARR, stops=None)

    assert is_direct(single)
    assert not is_direct(chained)
    assert is_direct(bare)


def test_validate_all_uses_each_role_endpoints(make_offer):
    to_hub = make_offer("CDG", "ALG", DEP, ARR)
    from_hub = make_offer("ALG", "DXB", DEP, ARR)
    misplaced = make_offer("ALG", "IST", DEP, ARR)

    valid = validate_all(
        {LegRole.OUTBOUND_TO_HUB: [to_hub], LegRole.OUTBOUND_FROM_HUB: [from_hub, misplaced]},
        "CDG", "DXB", "ALG",
    )

    assert valid[LegRole.OUTBOUND_TO_HUB] == [to_hub]
    assert valid[LegRole.OUTBOUND_FROM_HUB] == [from_hub]
