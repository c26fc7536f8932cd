import pytest

from e2catalog.utils.identifiers import (
    decode_bouquet_id,
    decode_reference,
    derive_bouquet_id,
    derive_meta_id,
    encode_reference,
    picon_filename,
)

from tests.conftest import BBC_REF, NEWS_REF, SPORT_REF


def test_bouquet_id_is_deterministic_and_reversible():
    assert derive_bouquet_id(NEWS_REF) == derive_bouquet_id(NEWS_REF)
    assert derive_bouquet_id(NEWS_REF) != derive_bouquet_id(SPORT_REF)
    assert decode_bouquet_id(derive_bouquet_id(NEWS_REF)) == NEWS_REF


def test_bouquet_id_is_url_safe_without_padding():
    bouquet_id = derive_bouquet_id(NEWS_REF)

    assert bouquet_id.startswith("bouquet_")
    token = bouquet_id[len("bouquet_"):]
    assert "=" not in token
    assert "+" not in token and "/" not in token


def test_encode_reference_matches_base64url():
    # "ab?" -> base64 "YWI/" -> base64url "YWI_"
    assert encode_reference("ab?") == "YWI_"
    assert decode_reference("YWI_") == "ab?"


def test_decode_rejects_foreign_ids():
    with pytest.raises(ValueError):
        decode_bouquet_id("enigma2_abc")
    with pytest.raises(ValueError):
        decode_reference("%%%")


def test_meta_id_combines_bouquet_and_service():
    bouquet_id = derive_bouquet_id(NEWS_REF)

    meta_id = derive_meta_id(bouquet_id, BBC_REF)

    assert meta_id == f"enigma2_{bouquet_id}_{encode_reference(BBC_REF)}"


def test_picon_filename_convention():
    assert picon_filename(BBC_REF) == "1_0_19_1B1D_802_2_11A0000_0_0_0"
    assert picon_filename("1:0:1:A:B:C:D:0:0:0::::") == "1_0_1_A_B_C_D_0_0_0"
