#!/usr/bin/env python3

# Builds the strings the W3S XML interface expects to be signed
# References:
# https://wiki.webmoney.ru/projects/webmoney/wiki/XML-interfaces

from datetime import datetime
from typing import Optional

from WMCrypt import FormatError

API_URL_MASK = "https://w3s.webmoney.ru/asp/XML%s.asp"

# operations
OPERATION_TRANSFER_MONEY = "Trans"
OPERATION_GET_TRANSACTIONS_HISTORY = "Operations"
OPERATION_GET_BALANCE = "Purses"

# the interface predates unicode
W3S_ENCODING = "cp1251"

def api_url(operation: str) -> str:
	return API_URL_MASK % operation

def get_request_number(now: Optional[datetime] = None) -> str:
	"""
	Request numbers must grow between calls, local time down to the millisecond does the job
	"""
	now = now or datetime.now()
	return now.strftime("%Y%m%d%H%M%S") + f"{now.microsecond // 1000:03d}"

def encode_sign_string(s: str) -> bytes:
	try:
		return s.encode(W3S_ENCODING)
	except UnicodeEncodeError as e:
		raise FormatError(f"Can't encode \"{s}\" as {W3S_ENCODING}: {e.reason} at position {e.start}") from e

def transfer_money_sign_string(reqn: str, tranid: int, pursesrc: str, pursedest: str, amount: str, period: int, pcode: str, desc: str, wminvid: int) -> str:
	return f"{reqn}{tranid}{pursesrc}{pursedest}{amount}{period}{pcode}{desc}{wminvid}"

def transactions_history_sign_string(purse: str, reqn: str) -> str:
	return purse + reqn

def balance_sign_string(wmid: str, reqn: str) -> str:
	return wmid + reqn

__all__ = [
	"API_URL_MASK",
	"OPERATION_TRANSFER_MONEY",
	"OPERATION_GET_TRANSACTIONS_HISTORY",
	"OPERATION_GET_BALANCE",
	"W3S_ENCODING",
	"api_url",
	"get_request_number",
	"encode_sign_string",
	"transfer_money_sign_string",
	"transactions_history_sign_string",
	"balance_sign_string"
]
