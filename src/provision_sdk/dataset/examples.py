"""Example data sets for a domain registration category.

These show how provider domains declare nested and conditional rules, and
serve as fixtures for the test suite.
"""

from __future__ import annotations

from typing import Optional

from provision_sdk.dataset.base import DataSet
from provision_sdk.dataset.rules import Rules


class NameServer(DataSet):
    """A single name server, optionally with a glue record IP."""

    @classmethod
    def rules(cls) -> Rules:
        return Rules({
            "host": ["required", "alpha-dash-dot"],
            "ip": ["ip"],
        })

    @property
    def host(self) -> str:
        return self.get("host")

    @property
    def ip(self) -> Optional[str]:
        return self.get("ip")


class Registrant(DataSet):
    """Contact details of a domain registrant."""

    @classmethod
    def rules(cls) -> Rules:
        return Rules({
            "name": ["required_without:organisation", "string"],
            "organisation": ["required_without:name", "string"],
            "email": ["email"],
            "phone": ["nullable", "string", "international_phone"],
            "city": ["string"],
            "country_code": ["string", "size:2", "country_code"],
            "address1": ["string"],
            "postcode": ["nullable", "string"],
            "contact_type": ["nullable", "string"],
            "password": ["nullable", "string"],
        })

    @property
    def name(self) -> Optional[str]:
        return self.get("name")

    @property
    def organisation(self) -> Optional[str]:
        return self.get("organisation")

    @property
    def email(self) -> Optional[str]:
        return self.get("email")

    @property
    def phone(self) -> Optional[str]:
        return self.get("phone")

    @property
    def city(self) -> Optional[str]:
        return self.get("city")

    @property
    def country_code(self) -> Optional[str]:
        return self.get("country_code")

    @property
    def address1(self) -> Optional[str]:
        return self.get("address1")

    @property
    def postcode(self) -> Optional[str]:
        return self.get("postcode")

    @property
    def contact_type(self) -> Optional[str]:
        return self.get("contact_type")

    @property
    def password(self) -> Optional[str]:
        return self.get("password")


class RegisterParameterSet(DataSet):
    """Parameters of a domain registration.

    Either an existing ``registrant_id`` or new ``registrant`` details must
    be given.
    """

    @classmethod
    def rules(cls) -> Rules:
        return Rules({
            "sld": ["required", "alpha-dash"],
            "tld": ["required", "alpha-dash-dot"],
            "renew_years": ["required", "integer"],
            "admin_contact_id": ["string"],
            "billing_contact_id": ["string"],
            "tech_contact_id": ["string"],
            "registrant_id": ["required_without:registrant", "string"],
            "registrant": ["required_without:registrant_id", Registrant],
            "ns1": [NameServer],
            "ns2": [NameServer],
            "ns3": [NameServer],
            "ns4": [NameServer],
            "ns5": [NameServer],
        })

    @property
    def sld(self) -> str:
        return self.get("sld")

    @property
    def tld(self) -> str:
        return self.get("tld")

    @property
    def domain(self) -> str:
        return f"{self.sld}.{self.tld}"

    @property
    def renew_years(self) -> int:
        return int(self.get("renew_years"))

    @property
    def admin_contact_id(self) -> Optional[str]:
        return self.get("admin_contact_id")

    @property
    def billing_contact_id(self) -> Optional[str]:
        return self.get("billing_contact_id")

    @property
    def tech_contact_id(self) -> Optional[str]:
        return self.get("tech_contact_id")

    @property
    def registrant_id(self) -> Optional[str]:
        return self.get("registrant_id")

    @property
    def registrant(self) -> Optional[Registrant]:
        return self.get("registrant")

    @property
    def nameservers(self) -> list[NameServer]:
        """The given name servers, in order."""
        return [self.get(f"ns{i}") for i in range(1, 6) if self.has(f"ns{i}")]


class ResetPasswordParameterSet(DataSet):
    """Parameters for resetting an account password."""

    @classmethod
    def rules(cls) -> Rules:
        return Rules({
            "username": ["required", "alpha_num"],
            "password": ["required", "string"],
        })

    @property
    def username(self) -> str:
        return self.get("username")

    @property
    def password(self) -> str:
        return self.get("password")
