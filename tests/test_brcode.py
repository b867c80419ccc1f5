import random
import string

import pytest

from pixcode.brcode import (
    AdditionalData,
    MerchantAccountInfo,
    ParsedPixData,
    assemble_payload,
    format_amount,
    parse_payload,
    validate_payload,
)
from pixcode.crc import crc16_ccitt
from pixcode.services.errors import EncodingError, InvalidPayloadError, MissingFieldError
from pixcode.tlv import parse_tlv

MERCHANT = {
    "pix_key": "contato@dinamica.com",
    "merchant_name": "Dinamica SaaS",
    "merchant_city": "Sao Paulo",
}

TX123_PAYLOAD = (
    "00020101021226420014br.gov.bcb.pix0120contato@dinamica.com"
    "520400005303986540510.005802BR5913Dinamica SaaS6009Sao Paulo"
    "62250505TX1230212Plano Mensal6304975B"
)
BARE_PAYLOAD = (
    "00020101021226420014br.gov.bcb.pix0120contato@dinamica.com"
    "5204000053039865802BR5913Dinamica SaaS6009Sao Paulo63045FFB"
)
EFI_PAYLOAD = (
    "00020101021226900014BR.GOV.BCB.PIX2568qrcodespix-h.sejaefi.com.br/v2/cobv/"
    "eb34b1f05740459b9c19b09624713eef5204000053039865802BR5905EFISA6008SAOPAULO"
    "62070503***6304612C"
)


def top_level_tags(payload):
    return [item.tag for item in parse_tlv(payload)]


def test_assemble_known_vector():
    payload = assemble_payload(amount=10.0, tx_id="TX123", description="Plano Mensal", **MERCHANT)
    assert payload == TX123_PAYLOAD


def test_assemble_without_optional_fields():
    assert assemble_payload(**MERCHANT) == BARE_PAYLOAD


def test_merchant_account_length_matches_content():
    block = MerchantAccountInfo(pix_key="contato@dinamica.com").encode()
    assert block.startswith("26")
    declared = int(block[2:4])
    inner = block[4:]
    assert declared == len(inner) == 42
    assert inner == "0014br.gov.bcb.pix0120contato@dinamica.com"


def test_field_order():
    payload = assemble_payload(amount="12.5", tx_id="T1", **MERCHANT)
    tags = top_level_tags(payload)
    assert payload.startswith("000201")
    assert tags == ["00", "01", "26", "52", "53", "54", "58", "59", "60", "62", "63"]
    assert payload[-8:-4] == "6304"


@pytest.mark.parametrize("amount", [None, 0, 0.0, "0.00", -5, 0.001])
def test_amount_omitted_unless_positive(amount):
    payload = assemble_payload(amount=amount, **MERCHANT)
    assert "54" not in top_level_tags(payload)


@pytest.mark.parametrize("tx_id,description", [(None, None), ("", ""), (None, "")])
def test_additional_data_omitted_when_empty(tx_id, description):
    payload = assemble_payload(tx_id=tx_id, description=description, **MERCHANT)
    assert "62" not in top_level_tags(payload)


def test_additional_data_with_description_only():
    block = AdditionalData(description="Plano Anual").encode()
    assert block == "62150211Plano Anual"


def test_additional_data_truncates_description():
    block = AdditionalData(tx_id="TX1", description="x" * 80).encode()
    assert block == "6283" + "0503TX1" + "0272" + "x" * 72


@pytest.mark.parametrize("field", ["pix_key", "merchant_name", "merchant_city"])
@pytest.mark.parametrize("value", [None, "", "   "])
def test_missing_merchant_fields(field, value):
    kwargs = dict(MERCHANT, **{field: value})
    with pytest.raises(MissingFieldError) as exc_info:
        assemble_payload(**kwargs)
    assert field in exc_info.value.message


def test_oversize_merchant_name_is_encoding_error():
    with pytest.raises(EncodingError):
        assemble_payload(pix_key="k", merchant_name="n" * 100, merchant_city="c")


def test_oversize_pix_key_is_encoding_error():
    with pytest.raises(EncodingError):
        assemble_payload(pix_key="k" * 80, merchant_name="n", merchant_city="c")


@pytest.mark.parametrize(
    "amount,expected",
    [(10, "10.00"), (10.0, "10.00"), ("1.5", "1.50"), (0.005, "0.01"), (999999.99, "999999.99"), (1.005, "1.01")],
)
def test_format_amount(amount, expected):
    assert format_amount(amount) == expected


@pytest.mark.parametrize("amount", ["abc", float("nan"), float("inf")])
def test_format_amount_rejects_garbage(amount):
    with pytest.raises(EncodingError):
        format_amount(amount)


def test_validate_accepts_assembled_payloads():
    assert validate_payload(TX123_PAYLOAD)
    assert validate_payload(BARE_PAYLOAD)
    assert validate_payload(EFI_PAYLOAD)


@pytest.mark.parametrize("value", [None, 123, b"000201", "", "000201", TX123_PAYLOAD[:43]])
def test_validate_rejects_non_payloads(value):
    assert validate_payload(value) is False


def test_validate_rejects_wrong_prefix():
    assert not validate_payload("000202" + TX123_PAYLOAD[6:])


def test_validate_detects_every_single_character_flip():
    for index, original in enumerate(TX123_PAYLOAD):
        replacement = "0" if original != "0" else "1"
        tampered = TX123_PAYLOAD[:index] + replacement + TX123_PAYLOAD[index + 1 :]
        assert not validate_payload(tampered), index


def test_parse_known_vector():
    parsed = parse_payload(TX123_PAYLOAD)
    assert parsed == ParsedPixData(
        amount=10.0,
        merchant_name="Dinamica SaaS",
        merchant_city="Sao Paulo",
        additional_data=AdditionalData(tx_id="TX123", description="Plano Mensal"),
    )
    assert parsed.tx_id == "TX123"
    assert parsed.description == "Plano Mensal"


def test_parse_without_optional_fields():
    parsed = parse_payload(BARE_PAYLOAD)
    assert parsed.amount is None
    assert parsed.additional_data is None
    assert parsed.to_dict() == {"merchantName": "Dinamica SaaS", "merchantCity": "Sao Paulo"}


def test_parse_bank_issued_payload_skips_unknown_subfields():
    parsed = parse_payload(EFI_PAYLOAD)
    assert parsed.merchant_name == "EFISA"
    assert parsed.merchant_city == "SAOPAULO"
    assert parsed.amount is None
    assert parsed.tx_id == "***"


def test_parse_to_dict_uses_camel_case():
    assert parse_payload(TX123_PAYLOAD).to_dict() == {
        "amount": 10.0,
        "merchantName": "Dinamica SaaS",
        "merchantCity": "Sao Paulo",
        "additionalData": {"txId": "TX123", "description": "Plano Mensal"},
    }


def test_parse_rejects_invalid_payload():
    with pytest.raises(InvalidPayloadError):
        parse_payload(TX123_PAYLOAD[:-1] + "0")


def test_parse_rejects_checksummed_but_broken_stream():
    body = "000201" + "0199" + "x" * 30 + "6304"
    with pytest.raises(InvalidPayloadError):
        parse_payload(body + crc16_ccitt(body))


def test_description_truncation_is_lossy():
    description = "d" * 90
    parsed = parse_payload(assemble_payload(amount=1, description=description, **MERCHANT))
    assert parsed.description == description[:72]


def _random_text(rng, max_length):
    alphabet = string.ascii_letters + string.digits + " .-*@"
    length = rng.randint(1, max_length)
    return rng.choice(string.ascii_letters) + "".join(rng.choice(alphabet) for _ in range(length - 1))


def test_round_trip_random_inputs():
    rng = random.Random(1234)
    for _ in range(200):
        name = _random_text(rng, 25)
        city = _random_text(rng, 15)
        tx_id = _random_text(rng, 25) if rng.random() < 0.7 else None
        # tag 62 holds at most 99 characters including both sub-field headers
        description = _random_text(rng, 66 if tx_id else 72) if rng.random() < 0.7 else None
        cents = rng.randint(1, 99999999)
        amount = f"{cents // 100}.{cents % 100:02d}"

        payload = assemble_payload("chave@pix.com", name, city, amount, tx_id, description)
        assert validate_payload(payload)
        parsed = parse_payload(payload)

        assert parsed.merchant_name == name
        assert parsed.merchant_city == city
        assert parsed.amount == float(amount)
        assert parsed.tx_id == tx_id
        assert parsed.description == description


def test_additional_data_over_99_characters_is_encoding_error():
    with pytest.raises(EncodingError):
        assemble_payload(tx_id="t" * 25, description="d" * 72, **MERCHANT)
