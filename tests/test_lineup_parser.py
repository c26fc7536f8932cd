from e2catalog.services.lineup_parser_service import parse_bouquets_xml, parse_channels_xml
from e2catalog.utils.identifiers import decode_bouquet_id

from tests.conftest import BBC_REF, CNN_REF, NEWS_REF, SPORT_REF, services_xml


def test_parse_bouquets_skips_separator():
    xml = services_xml(
        (NEWS_REF, "News"),
        ('1:64:0:0:0:0:0:0:0:0:FROM BOUQUET "x"', "---separator---"),
        (SPORT_REF, "Sport"),
    )

    bouquets = parse_bouquets_xml(xml)

    assert [b.name for b in bouquets] == ["News", "Sport"]
    assert [b.reference for b in bouquets] == [NEWS_REF, SPORT_REF]
    assert decode_bouquet_id(bouquets[0].id) == NEWS_REF
    assert bouquets[0].display_name == ""


def test_parse_bouquets_requires_bouquet_marker():
    xml = services_xml(
        (BBC_REF, "BBC World HD"),
        (NEWS_REF, "News"),
    )

    assert [b.name for b in parse_bouquets_xml(xml)] == ["News"]


def test_parse_bouquets_drops_placeholder_and_empty_names():
    xml = services_xml(
        (NEWS_REF, "<n/a>"),
        (SPORT_REF, "   "),
        ('1:7:1:0:0:0:0:0:0:0:FROM BOUQUET "userbouquet.kids.tv" ORDER BY bouquet', "Kids"),
    )

    assert [b.name for b in parse_bouquets_xml(xml)] == ["Kids"]


def test_parse_trims_whitespace():
    xml = (
        b"<e2servicelist><e2service>"
        b"<e2servicereference>\n  " + NEWS_REF.replace('"', "&quot;").encode() + b"  \n</e2servicereference>"
        b"<e2servicename>  News  </e2servicename>"
        b"</e2service></e2servicelist>"
    )

    bouquets = parse_bouquets_xml(xml)

    assert bouquets[0].name == "News"
    assert bouquets[0].reference == NEWS_REF


def test_parse_channels_flags_hd_and_drops_markers():
    xml = services_xml(
        (BBC_REF, "BBC World HD"),
        ("1:64:1:0:0:0:0:0:0:0::--- Movies ---", "Movies"),
        (CNN_REF, "CNN"),
        ("1:0:1:AAAA:1:1:C00000:0:0:0:", "--- end ---"),
        ("1:0:19:3:3:3:C00000:0:0:0:", "Arte hd"),
    )

    channels = parse_channels_xml(xml)

    assert [c.name for c in channels] == ["BBC World HD", "CNN", "Arte hd"]
    assert [c.is_hd for c in channels] == [True, False, True]
    assert channels[0].service_reference == BBC_REF


def test_marker_reference_excluded_even_with_good_name():
    xml = services_xml(("1:64:0:0:0:0:0:0:0:0:", "Perfectly Normal Channel"))

    assert parse_channels_xml(xml) == []


def test_records_do_not_mix_across_blocks():
    xml = (
        b"<e2servicelist>"
        b"<e2service><e2servicename>Orphan</e2servicename></e2service>"
        b"<e2service><e2servicereference>" + CNN_REF.encode() + b"</e2servicereference>"
        b"<e2servicename>CNN</e2servicename></e2service>"
        b"<e2service><e2servicereference>" + BBC_REF.encode() + b"</e2servicereference></e2service>"
        b"</e2servicelist>"
    )

    channels = parse_channels_xml(xml)

    assert len(channels) == 1
    assert channels[0].name == "CNN"
    assert channels[0].service_reference == CNN_REF


def test_unescaped_ampersand_kept_in_names():
    xml = (
        b"<e2servicelist>"
        b"<e2service><e2servicereference>" + BBC_REF.encode() + b"</e2servicereference>"
        b"<e2servicename>One</e2servicename></e2service>"
        b"<e2service><e2servicereference>" + CNN_REF.encode() + b"</e2servicereference>"
        b"<e2servicename>Sky & Co</e2servicename></e2service>"
        b"<e2service><e2servicereference>1:0:19:3:3:3:C00000:0:0:0:</e2servicereference>"
        b"<e2servicename>Three &amp; Four</e2servicename></e2service>"
        b"</e2servicelist>"
    )

    channels = parse_channels_xml(xml)

    assert [c.name for c in channels] == ["One", "Sky & Co", "Three & Four"]
    assert channels[1].service_reference == CNN_REF


def test_empty_and_garbage_input_yield_empty_lists():
    assert parse_bouquets_xml("") == []
    assert parse_channels_xml(b"") == []
    assert parse_channels_xml("   ") == []
    assert parse_channels_xml("this is not xml") == []
    assert parse_bouquets_xml("<e2servicelist></e2servicelist>") == []


def test_accepts_str_input():
    xml = services_xml((CNN_REF, "CNN")).decode()

    assert [c.name for c in parse_channels_xml(xml)] == ["CNN"]
