import json

import pytest

from banktransfer.account_usecases import CreateAccountOutput, FindAccountBalanceOutput
from banktransfer.domain import Money
from banktransfer.responses import (
    ErrorResponse,
    InvalidInputError,
    ParameterInvalidError,
    SuccessResponse,
    encode_json,
)

ID_0 = "3c096a40-ccba-4b58-93ed-57379ab04680"
ZERO_TEXT = "0001-01-01 00:00:00 +0000 UTC"


def test_error_response_body_and_status():
    response = ErrorResponse.from_error(RuntimeError("error"), 500).to_response()

    assert response.status_code == 500
    assert response.mimetype == "application/json"
    assert response.get_data(as_text=True).strip() == '{"errors":["error"]}'


def test_error_messages_keep_order():
    messages = ["Name is a required field", "CPF is a required field"]
    response = ErrorResponse(messages, 400).to_response()

    assert response.status_code == 400
    assert json.loads(response.get_data(as_text=True)) == {"errors": messages}


def test_parameter_invalid_error_message():
    reply = ErrorResponse.from_error(ParameterInvalidError(), 400)

    assert reply.errors == ["parameter invalid"]


def test_invalid_input_error_message():
    assert str(InvalidInputError()) == "invalid input"


def test_success_response_with_output():
    output = CreateAccountOutput(ID_0, "Test", "07094564964", 10.5, ZERO_TEXT)

    response = SuccessResponse(output, 201).to_response()

    assert response.status_code == 201
    assert response.get_data(as_text=True).strip() == (
        '{"id":"3c096a40-ccba-4b58-93ed-57379ab04680","name":"Test",'
        '"cpf":"07094564964","balance":10.5,"created_at":"0001-01-01 00:00:00 +0000 UTC"}'
    )


def test_success_response_empty_list():
    response = SuccessResponse([], 200).to_response()

    assert response.get_data(as_text=True).strip() == "[]"


def test_integral_float_has_no_fraction():
    assert encode_json(FindAccountBalanceOutput(balance=10.0)) == '{"balance":10}'


@pytest.mark.parametrize(
    "number", [0.99, 10.5, 199.44, 10000.0, 1e-5, 1e-7, 1e21, 123456789.125, -3.25]
)
def test_float_round_trip(number):
    assert json.loads(encode_json(number)) == number


def test_small_exponent_is_trimmed():
    assert encode_json(1e-7) == "1e-7"


def test_money_encodes_as_integer():
    assert encode_json(Money(1099)) == "1099"


def test_html_characters_are_escaped():
    text = "<b>&</b>"
    encoded = encode_json(text)

    assert "<" not in encoded and ">" not in encoded and "&" not in encoded
    assert json.loads(encoded) == text


def test_mapping_keys_are_sorted():
    assert list(json.loads(encode_json({"b": 1, "a": 2}))) == ["a", "b"]


def test_nan_is_rejected():
    with pytest.raises(ValueError):
        encode_json(float("nan"))


def test_unsupported_type_is_rejected():
    with pytest.raises(TypeError):
        encode_json(object())