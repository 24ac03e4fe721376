from __future__ import annotations

from ninja import Schema


class LoginIn(Schema):
    email: str
    password: str


class StatusOut(Schema):
    status: str


class AddressOut(Schema):
    id: int
    label: str
    full_name: str
    phone: str
    street: str
    city: str
    state: str
    zip_code: str
    country: str
    is_default: bool


class AddressCreateIn(Schema):
    label: str = ""
    full_name: str = ""
    phone: str = ""
    street: str
    city: str
    state: str = ""
    zip_code: str
    country: str = "IN"
    is_default: bool = False
