from datetime import datetime

import pytest

from WMCrypt import FormatError

from w3s_request import *

def test_api_url():
	assert api_url(OPERATION_TRANSFER_MONEY) == "https://w3s.webmoney.ru/asp/XMLTrans.asp"
	assert api_url(OPERATION_GET_TRANSACTIONS_HISTORY) == "https://w3s.webmoney.ru/asp/XMLOperations.asp"
	assert api_url(OPERATION_GET_BALANCE) == "https://w3s.webmoney.ru/asp/XMLPurses.asp"

def test_get_request_number():
	now = datetime(2019, 3, 7, 9, 5, 1, 42000)
	assert get_request_number(now) == "20190307090501042"
	assert len(get_request_number()) == 17
	assert get_request_number().isdigit()

def test_transfer_money_sign_string():
	s = transfer_money_sign_string("20190307090501042", 1, "Z123456789012", "Z210987654321", "10.00", 0, "", "test", 0)
	assert s == "201903070905010421Z123456789012Z21098765432110.000test0"

def test_transactions_history_sign_string():
	assert transactions_history_sign_string("Z123456789012", "42") == "Z12345678901242"

def test_balance_sign_string():
	assert balance_sign_string("405002833238", "42") == "40500283323842"

def test_encode_sign_string():
	assert encode_sign_string("Оплата") == "Оплата".encode("cp1251")
	assert encode_sign_string("abc") == b"abc"

def test_encode_sign_string_unencodable():
	with pytest.raises(FormatError, match="cp1251"):
		encode_sign_string("pay 😀")
